#!/usr/bin/env python3
"""Escrow Ledger — End-to-End Simulation.

Drives the service layer through the lifecycle scenarios a buyer, a seller
and an admin can produce:

    Scenario 1: Happy Path
        - Buyer funds, seller releases -> RELEASED, further actions rejected

    Scenario 2: Dispute Resolved For Seller
        - Buyer funds, buyer disputes, admin releases -> RELEASED

    Scenario 3: Dispute Resolved For Buyer
        - Buyer funds, buyer disputes, admin refunds -> REFUNDED

    Scenario 4: Rejections
        - Seller tries to release a PROPOSED escrow (invalid transition)
        - Seller tries to fund (role not permitted)

After each scenario the audit trail is printed and the escrow is rebuilt from
its history to show that replay matches the stored snapshot.

Usage:
    # In-memory store (nothing written to disk):
    python simulation.py

    # Persist to a JSON file (run twice to see history survive a restart):
    python simulation.py --store .data/simulation.json

    # Run a specific scenario:
    python simulation.py --scenario 2
"""

from __future__ import annotations

import argparse
from decimal import Decimal

from escrow_ledger.domain.enums import EscrowAction, UserRole
from escrow_ledger.infrastructure.storage.backends import InMemoryBackend, JsonFileBackend
from escrow_ledger.infrastructure.storage.event_store import EventStore
from escrow_ledger.logging_config import get_logger, setup_logging
from escrow_ledger.services.escrow_service import EscrowService

setup_logging(log_level="INFO", json_logs=False)
logger = get_logger("simulation")

BUYER = "buyer-123"
SELLER = "seller-456"
ADMIN = "admin-001"


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------
def banner(text: str) -> None:
    width = 70
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width)


def section(text: str) -> None:
    print(f"\n--- {text} ---")


def act(
    svc: EscrowService,
    escrow_id: str,
    action: EscrowAction,
    performed_by: str,
    role: UserRole,
    reason: str | None = None,
) -> None:
    result = svc.apply_action(escrow_id, action, performed_by, role, reason)
    if result.success:
        print(f"  {role:<6} {action:<24} -> {result.escrow.current_state}")
    else:
        print(f"  {role:<6} {action:<24} REJECTED [{result.code}] {result.error}")


def print_audit_trail(svc: EscrowService, escrow_id: str) -> None:
    section("Audit trail")
    for i, event in enumerate(svc.get_events(escrow_id), start=1):
        line = f"  {i}. {event.timestamp.isoformat()} {event.type}"
        if event.type == "STATE_CHANGED":
            line += f" {event.from_state} -> {event.to_state} by {event.performed_by} ({event.role})"
        print(line)

    stored = svc.get_escrow(escrow_id).escrow
    replayed = svc.replay(escrow_id)
    print(f"  replay matches snapshot: {replayed == stored}")


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------
def scenario_1_happy_path(svc: EscrowService) -> None:
    banner("Scenario 1: Happy Path")
    escrow = svc.create_escrow(BUYER, SELLER, Decimal("5000"), "Purchase of goods")
    print(f"  created {escrow.id} in {escrow.current_state}")

    act(svc, escrow.id, EscrowAction.FUND, BUYER, UserRole.BUYER)
    act(svc, escrow.id, EscrowAction.RELEASE, SELLER, UserRole.SELLER)
    act(svc, escrow.id, EscrowAction.DISPUTE, BUYER, UserRole.BUYER, "Too late")
    print_audit_trail(svc, escrow.id)


def scenario_2_dispute_release(svc: EscrowService) -> None:
    banner("Scenario 2: Dispute Resolved For Seller")
    escrow = svc.create_escrow(BUYER, SELLER, Decimal("1200.50"), "Freelance design work")

    act(svc, escrow.id, EscrowAction.FUND, BUYER, UserRole.BUYER)
    act(svc, escrow.id, EscrowAction.DISPUTE, BUYER, UserRole.BUYER, "Late delivery")
    act(svc, escrow.id, EscrowAction.RESOLVE_DISPUTE_RELEASE, ADMIN, UserRole.ADMIN, "Delivered")
    print_audit_trail(svc, escrow.id)


def scenario_3_dispute_refund(svc: EscrowService) -> None:
    banner("Scenario 3: Dispute Resolved For Buyer")
    escrow = svc.create_escrow(BUYER, SELLER, Decimal("300"), "Concert tickets")

    act(svc, escrow.id, EscrowAction.FUND, BUYER, UserRole.BUYER)
    act(svc, escrow.id, EscrowAction.DISPUTE, BUYER, UserRole.BUYER, "Tickets never arrived")
    act(svc, escrow.id, EscrowAction.RESOLVE_DISPUTE_REFUND, ADMIN, UserRole.ADMIN)
    act(svc, escrow.id, EscrowAction.DISPUTE, BUYER, UserRole.BUYER)
    print_audit_trail(svc, escrow.id)


def scenario_4_rejections(svc: EscrowService) -> None:
    banner("Scenario 4: Rejections")
    escrow = svc.create_escrow(BUYER, SELLER, Decimal("75"), "Used bicycle")

    act(svc, escrow.id, EscrowAction.RELEASE, SELLER, UserRole.SELLER)
    act(svc, escrow.id, EscrowAction.FUND, SELLER, UserRole.SELLER)
    act(svc, escrow.id, EscrowAction.REFUND, ADMIN, UserRole.ADMIN)
    print_audit_trail(svc, escrow.id)


SCENARIOS = {
    1: scenario_1_happy_path,
    2: scenario_2_dispute_release,
    3: scenario_3_dispute_refund,
    4: scenario_4_rejections,
}


def main() -> None:
    parser = argparse.ArgumentParser(description="Escrow Ledger Simulation")
    parser.add_argument(
        "--scenario",
        type=int,
        default=0,
        help="Run a specific scenario (1-4). Default: run all.",
    )
    parser.add_argument(
        "--store",
        default=None,
        help="Path of a JSON store file. Default: in-memory store.",
    )
    args = parser.parse_args()

    backend = JsonFileBackend(args.store) if args.store else InMemoryBackend()
    svc = EscrowService(EventStore(backend))

    if args.scenario == 0:
        for scenario in SCENARIOS.values():
            scenario(svc)
    elif args.scenario in SCENARIOS:
        SCENARIOS[args.scenario](svc)
    else:
        print(f"Unknown scenario {args.scenario}. Available: 1, 2, 3, 4")
        return

    banner(f"Done: {len(svc.list_escrows())} escrow(s) in store")


if __name__ == "__main__":
    main()
