"""
Voucher code generation.

Codes look like V-XXXX-XXXX and use an alphabet without the look-alike
characters 0, O, 1 and I.
"""

import secrets

from app.config.business_constants import (
    VOUCHER_CODE_ALPHABET,
    VOUCHER_CODE_ATTEMPTS_PER_CODE,
    VOUCHER_CODE_GROUP_LENGTH,
    VOUCHER_CODE_PREFIX,
)
from app.repositories.voucher_repository import VoucherRepository


class VoucherCodeExhaustedError(Exception):
    """Raised when unique codes could not be generated."""


def generate_voucher_code() -> str:
    """Generate one random voucher code."""
    groups = [
        "".join(
            secrets.choice(VOUCHER_CODE_ALPHABET)
            for _ in range(VOUCHER_CODE_GROUP_LENGTH)
        )
        for _ in range(2)
    ]
    return f"{VOUCHER_CODE_PREFIX}-{groups[0]}-{groups[1]}"


def is_valid_voucher_code(code: str) -> bool:
    """Check code shape without touching the database."""
    parts = code.split("-")
    if len(parts) != 3 or parts[0] != VOUCHER_CODE_PREFIX:
        return False
    return all(
        len(part) == VOUCHER_CODE_GROUP_LENGTH
        and all(ch in VOUCHER_CODE_ALPHABET for ch in part)
        for part in parts[1:]
    )


async def generate_unique_codes(repo: VoucherRepository, count: int) -> list[str]:
    """
    Generate codes unique among themselves and against stored vouchers.

    Args:
        repo: Voucher repository used to check stored codes
        count: Number of codes

    Returns:
        List of unique codes

    Raises:
        VoucherCodeExhaustedError: If attempts ran out
    """
    codes: list[str] = []
    seen: set[str] = set()
    attempts = 0
    max_attempts = count * VOUCHER_CODE_ATTEMPTS_PER_CODE

    while len(codes) < count:
        if attempts >= max_attempts:
            raise VoucherCodeExhaustedError(
                f"Could not generate {count} unique voucher codes "
                f"after {attempts} attempts"
            )
        batch = []
        while len(batch) < count - len(codes) and attempts < max_attempts:
            attempts += 1
            code = generate_voucher_code()
            if code not in seen:
                seen.add(code)
                batch.append(code)

        taken = await repo.existing_codes(batch)
        codes.extend(code for code in batch if code not in taken)

    return codes
