"""
capdrop: Basic Usage Example

Demonstrates:
- Initializing an airdrop ledger
- Claims, a refused repeat claim, and an exhausted supply
- Admin withdrawal of unclaimed tokens
- Journal verification
"""

from capdrop import (
    AirdropContract,
    AlreadyClaimed,
    Claim,
    InstantiateMsg,
    SupplyExhausted,
    WithdrawByAdmin,
)
from capdrop.messages import GetSaleInfo


def main():
    """Basic capdrop usage."""

    print("=" * 60)
    print("capdrop: Basic Usage Example")
    print("=" * 60)
    print()

    # 1. Initialize
    print("1. Initializing ledger (supply 250, 100 per claim)...")
    contract = AirdropContract()
    contract.instantiate(InstantiateMsg(
        admin=           "admin",
        token_reference= "tok",
        total_supply=    250,
        claim_amount=    100,
    ))
    print()

    # 2. Claims
    print("2. Claiming...")
    for caller in ("user1", "user1", "user2", "user3"):
        try:
            response = contract.execute(caller, Claim())
            transfer = response.messages[0]
            print(f"  {caller}: paid {transfer.amount} {transfer.token_reference}")
        except (AlreadyClaimed, SupplyExhausted) as e:
            print(f"  {caller}: refused ({e.kind.value})")
    print(f"  total distributed: {contract.query(GetSaleInfo()).total_distributed}")
    print()

    # 3. Withdrawal
    print("3. Admin withdraws the unclaimed remainder...")
    transfer = contract.execute("admin", WithdrawByAdmin()).messages[0]
    print(f"  {transfer.amount} {transfer.token_reference} -> {transfer.recipient}")
    print()

    # 4. Journal
    print("4. Verifying journal...")
    report = contract.journal.verify(contract.storage)
    print(f"  entries: {report.total_entries}")
    print(f"  valid:   {report.valid}")
    print(f"  head:    {report.head_hash}")


if __name__ == "__main__":
    main()
