"""
Token account classifier.

Recognizes accounts owned by the SPL Token and Token-2022 programs and pulls
the mint and owner keys out of their fixed-offset layout:

    offset  0..32   mint
    offset 32..64   owner
    ...
    offset 165      account type (Token-2022 extensions only)

Most accounts seen by the indexer are not token accounts, so a mismatch is
reported as None and never as an exception.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from solders.pubkey import Pubkey

from .models import AccountUpdate

PUBKEY_BYTES = 32
SPL_TOKEN_ACCOUNT_MINT_OFFSET = 0
SPL_TOKEN_ACCOUNT_OWNER_OFFSET = 32
SPL_TOKEN_ACCOUNT_LENGTH = 165
SPL_TOKEN_MULTISIG_LENGTH = 355

# Token-2022 account-type byte written after the base layout
ACCOUNTTYPE_ACCOUNT = 2

SPL_TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
TOKEN_2022_PROGRAM_ID = Pubkey.from_string("TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb")


def _valid_spl_token_account(data: bytes) -> bool:
    return len(data) == SPL_TOKEN_ACCOUNT_LENGTH


def _valid_token_2022_account(data: bytes) -> bool:
    if _valid_spl_token_account(data):
        return True
    return (
        len(data) > SPL_TOKEN_ACCOUNT_LENGTH
        and len(data) != SPL_TOKEN_MULTISIG_LENGTH
        and data[SPL_TOKEN_ACCOUNT_LENGTH] == ACCOUNTTYPE_ACCOUNT
    )


@dataclass(frozen=True)
class TokenProgram:
    """One supported token program layout."""

    name: str
    program_id: Pubkey
    _validator: Callable[[bytes], bool]

    def owns(self, owner: bytes) -> bool:
        return owner == bytes(self.program_id)

    def valid_account_data(self, data: bytes) -> bool:
        return self._validator(data)

    def unpack_owner(self, data: bytes) -> Optional[Pubkey]:
        """Owner key of a token account, or None if data is not one."""
        return self._unpack_pubkey(data, SPL_TOKEN_ACCOUNT_OWNER_OFFSET)

    def unpack_mint(self, data: bytes) -> Optional[Pubkey]:
        """Mint key of a token account, or None if data is not one."""
        return self._unpack_pubkey(data, SPL_TOKEN_ACCOUNT_MINT_OFFSET)

    def _unpack_pubkey(self, data: bytes, offset: int) -> Optional[Pubkey]:
        if not self.valid_account_data(data):
            return None
        return Pubkey.from_bytes(bytes(data[offset : offset + PUBKEY_BYTES]))


SPL_TOKEN = TokenProgram("spl-token", SPL_TOKEN_PROGRAM_ID, _valid_spl_token_account)
TOKEN_2022 = TokenProgram("token-2022", TOKEN_2022_PROGRAM_ID, _valid_token_2022_account)

TOKEN_PROGRAMS: tuple[TokenProgram, ...] = (SPL_TOKEN, TOKEN_2022)


def unpack_owner(program: TokenProgram, update: AccountUpdate) -> Optional[Pubkey]:
    """Owner key of the update if it is a token account of `program`."""
    if not program.owns(update.owner):
        return None
    return program.unpack_owner(update.data)


def unpack_mint(program: TokenProgram, update: AccountUpdate) -> Optional[Pubkey]:
    """Mint key of the update if it is a token account of `program`."""
    if not program.owns(update.owner):
        return None
    return program.unpack_mint(update.data)


def extract_owner(update: AccountUpdate) -> Iterator[Pubkey]:
    """Owner keys of the update, one per matching program."""
    for program in TOKEN_PROGRAMS:
        key = unpack_owner(program, update)
        if key is not None:
            yield key


def extract_mint(update: AccountUpdate) -> Iterator[Pubkey]:
    """Mint keys of the update, one per matching program."""
    for program in TOKEN_PROGRAMS:
        key = unpack_mint(program, update)
        if key is not None:
            yield key


def is_token_account(update: AccountUpdate) -> bool:
    return any(
        program.owns(update.owner) and program.valid_account_data(update.data)
        for program in TOKEN_PROGRAMS
    )
