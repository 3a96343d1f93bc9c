"""
TransferEmitter: builds payout descriptions. Performs no I/O.
"""

from capdrop.core.models import TransferInstruction


def describe_transfer(token_reference: str, recipient: str, amount: int) -> TransferInstruction:
    return TransferInstruction(
        token_reference=token_reference,
        recipient=recipient,
        amount=amount,
    )
