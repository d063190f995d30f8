"""Tests for voucher code generation."""

from unittest.mock import AsyncMock

import pytest

from app.config.business_constants import VOUCHER_CODE_ALPHABET
from app.services.voucher.codes import (
    VoucherCodeExhaustedError,
    generate_unique_codes,
    generate_voucher_code,
    is_valid_voucher_code,
)


class TestVoucherCodeFormat:
    """Test code shape."""

    def test_generated_code_shape(self):
        """Test V-XXXX-XXXX with the unambiguous alphabet."""
        for _ in range(50):
            code = generate_voucher_code()
            assert is_valid_voucher_code(code), code

    def test_alphabet_has_no_lookalikes(self):
        for ch in "0O1I":
            assert ch not in VOUCHER_CODE_ALPHABET

    @pytest.mark.parametrize(
        "code",
        ["V-ABCD", "X-ABCD-EFGH", "V-ABC0-EFGH", "V-ABCDE-FGH", "v-abcd-efgh"],
    )
    def test_invalid_codes(self, code):
        assert is_valid_voucher_code(code) is False


class TestUniqueCodes:
    """Test uniqueness against stored codes."""

    @pytest.mark.asyncio
    async def test_codes_are_unique(self):
        repo = AsyncMock()
        repo.existing_codes = AsyncMock(return_value=set())

        codes = await generate_unique_codes(repo, 25)

        assert len(codes) == 25
        assert len(set(codes)) == 25

    @pytest.mark.asyncio
    async def test_stored_codes_are_regenerated(self):
        """Test a code already in the database is replaced."""
        repo = AsyncMock()
        taken: set[str] = set()

        async def existing(batch):
            if not taken:
                taken.add(batch[0])
                return {batch[0]}
            return set()

        repo.existing_codes = AsyncMock(side_effect=existing)

        codes = await generate_unique_codes(repo, 3)

        assert len(codes) == 3
        assert not taken.intersection(codes)
        assert repo.existing_codes.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_when_every_code_collides(self):
        repo = AsyncMock()
        repo.existing_codes = AsyncMock(side_effect=lambda batch: set(batch))

        with pytest.raises(VoucherCodeExhaustedError):
            await generate_unique_codes(repo, 2)
