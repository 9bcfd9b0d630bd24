"""Solana ledger client for anchoring media hashes.

This module provides the LedgerAnchoringClient used by the submission
pipeline. It includes:

- Signer key loading from inline JSON or a keypair file
- An explicit Disabled / Ready state chosen once at startup
- Memo transaction submission with confirmation at "confirmed" commitment
- Parsed transaction lookup that proves a stored anchor was authored by us
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TxOpts
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from media_anchor.core.settings import settings
from media_anchor.utils.canonical import render_number

# Configure logger for this module
logger = logging.getLogger(__name__)

MEMO_PROGRAM_ID_STR = "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr"
MEMO_PROGRAM_ID = Pubkey.from_string(MEMO_PROGRAM_ID_STR)
MEMO_PROGRAM_NAME = "spl-memo"
MEMO_NONCE_CHARS = 16
SECRET_KEY_LENGTH = 64


class LedgerError(RuntimeError):
    """Base exception raised for ledger-related failures."""


class LedgerConfigurationError(LedgerError):
    """Raised at startup when anchoring is required but cannot be set up."""


class KeyMaterialError(LedgerError):
    """Raised when signer key material is missing or malformed."""


class LedgerUnavailableError(LedgerError):
    """Raised when verification is requested while anchoring is disabled."""


class LedgerSubmissionError(LedgerError):
    """Raised when a memo transaction could not be sent or confirmed."""


class LedgerFetchError(LedgerError):
    """Raised when a transaction lookup failed at the RPC level."""


@dataclass(frozen=True)
class LedgerConfig:
    """Immutable configuration for ledger operations."""

    rpc_url: str
    private_key_json: str | None
    keypair_path: str
    required: bool
    verify_on_read: bool


@dataclass(frozen=True)
class LedgerDisabled:
    """Anchoring is switched off; ``reason`` says why."""

    reason: str


@dataclass(frozen=True)
class LedgerReady:
    """Live RPC connection plus the keypair that signs anchor transactions."""

    rpc: Any
    signer: Keypair


LedgerClientState = LedgerDisabled | LedgerReady

RpcFactory = Callable[[str], Any]


def load_ledger_config() -> LedgerConfig:
    """Build configuration object from global settings."""

    return LedgerConfig(
        rpc_url=settings.ledger_rpc_url,
        private_key_json=settings.ledger_private_key_json,
        keypair_path=settings.ledger_keypair_path,
        required=settings.ledger_required,
        verify_on_read=settings.ledger_verify_on_read,
    )


def parse_secret_key(key_material: str) -> bytes:
    """Decode a Solana CLI style secret key (JSON array of 64 bytes)."""
    try:
        values = json.loads(key_material)
    except ValueError as exc:
        raise KeyMaterialError("Solana key material must be a valid JSON array") from exc

    if not isinstance(values, list) or len(values) != SECRET_KEY_LENGTH:
        raise KeyMaterialError("Solana key material must be an array of exactly 64 numbers")

    for value in values:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
            raise KeyMaterialError(
                "Solana key material must contain byte values between 0 and 255"
            )

    return bytes(values)


def load_key_material(config: LedgerConfig) -> str:
    """Return inline key material, falling back to the keypair file."""
    if config.private_key_json:
        return config.private_key_json

    path = Path(config.keypair_path).expanduser()
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise KeyMaterialError(
            "neither SOLANA_PRIVATE_KEY_JSON nor a readable keypair file is available"
        ) from exc


def _default_rpc_factory(rpc_url: str) -> AsyncClient:
    return AsyncClient(rpc_url, commitment=Confirmed)


def initialize_ledger_client(
    config: LedgerConfig | None = None,
    *,
    rpc_factory: RpcFactory | None = None,
) -> LedgerAnchoringClient:
    """Load the signer and connect, or fall back to a disabled client.

    Raises:
        LedgerConfigurationError: Only when ``config.required`` is set and the
            signer could not be loaded.
    """
    config = config or load_ledger_config()
    factory = rpc_factory or _default_rpc_factory

    try:
        secret_key = parse_secret_key(load_key_material(config))
        signer = Keypair.from_bytes(secret_key)
    except Exception as exc:
        if config.required:
            raise LedgerConfigurationError(
                f"Solana anchoring is required but unavailable: {exc}"
            ) from exc
        logger.warning("Solana integration disabled: %s", exc)
        return LedgerAnchoringClient(LedgerDisabled(reason=str(exc)), config=config)

    rpc = factory(config.rpc_url)
    logger.info("Solana integration enabled (signer %s, rpc %s)", signer.pubkey(), config.rpc_url)
    return LedgerAnchoringClient(LedgerReady(rpc=rpc, signer=signer), config=config)


def build_memo(
    *,
    media_type: str,
    video_hash: str,
    request_client_id: str,
    timestamp: int | float,
    nonce: str,
) -> str:
    """Return the compact JSON memo recorded on chain for an anchor."""
    # Key order and separators mirror JSON.stringify so memos stay byte-stable.
    return (
        "{"
        f'"m":{json.dumps(media_type)},'
        f'"h":{json.dumps(video_hash)},'
        f'"c":{json.dumps(request_client_id, ensure_ascii=False)},'
        f'"t":{render_number(timestamp)},'
        f'"n":{json.dumps(nonce[:MEMO_NONCE_CHARS], ensure_ascii=False)}'
        "}"
    )


def _account_key_text(entry: Any) -> str:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, Mapping):
        pubkey = entry.get("pubkey")
        return str(pubkey) if pubkey is not None else ""
    return ""


def extract_memo_text(instruction: Any) -> str | None:
    """Return the memo string carried by a parsed instruction, if any."""
    if not isinstance(instruction, Mapping):
        return None

    is_memo = (
        instruction.get("program") == MEMO_PROGRAM_NAME
        or instruction.get("programId") == MEMO_PROGRAM_ID_STR
    )
    if not is_memo:
        return None

    parsed = instruction.get("parsed")
    if isinstance(parsed, str):
        return parsed
    if isinstance(parsed, Mapping) and isinstance(parsed.get("memo"), str):
        return parsed["memo"]
    return None


def has_matching_memo(
    instructions: Iterable[Any],
    *,
    media_type: str,
    video_hash: str,
    request_client_id: str,
) -> bool:
    """Return True if any memo instruction records the expected submission."""
    for instruction in instructions:
        memo_text = extract_memo_text(instruction)
        if not memo_text:
            continue
        try:
            payload = json.loads(memo_text)
        except ValueError:
            continue
        if not isinstance(payload, dict):
            continue
        if (
            payload.get("m") == media_type
            and payload.get("h") == video_hash
            and payload.get("c") == request_client_id
        ):
            return True
    return False


def _transaction_to_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, Mapping):
        return dict(value)
    return json.loads(value.to_json())


class LedgerAnchoringClient:
    """Anchor hashes as memo transactions and verify stored anchors."""

    def __init__(self, state: LedgerClientState, *, config: LedgerConfig | None = None) -> None:
        self.state = state
        self.config = config

    @property
    def enabled(self) -> bool:
        return isinstance(self.state, LedgerReady)

    @property
    def signer_public_key(self) -> str | None:
        if isinstance(self.state, LedgerReady):
            return str(self.state.signer.pubkey())
        return None

    async def anchor_hash(
        self,
        *,
        media_type: str,
        video_hash: str,
        request_client_id: str,
        timestamp: int | float,
        nonce: str,
    ) -> str | None:
        """Submit a memo transaction for the hash and return its signature.

        Returns None without touching the network when anchoring is disabled.

        Raises:
            LedgerSubmissionError: If the RPC node rejected or failed the call.
        """
        state = self.state
        if not isinstance(state, LedgerReady):
            return None

        memo = build_memo(
            media_type=media_type,
            video_hash=video_hash,
            request_client_id=request_client_id,
            timestamp=timestamp,
            nonce=nonce,
        )
        instruction = Instruction(MEMO_PROGRAM_ID, memo.encode("utf-8"), [])

        try:
            latest = await state.rpc.get_latest_blockhash(commitment=Confirmed)
            blockhash = latest.value.blockhash
            message = Message.new_with_blockhash([instruction], state.signer.pubkey(), blockhash)
            transaction = Transaction([state.signer], message, blockhash)
            response = await state.rpc.send_transaction(
                transaction,
                opts=TxOpts(skip_confirmation=True, preflight_commitment=Confirmed),
            )
            signature = response.value
            await state.rpc.confirm_transaction(
                signature,
                commitment=Confirmed,
                last_valid_block_height=latest.value.last_valid_block_height,
            )
        except Exception as exc:
            raise LedgerSubmissionError(f"Memo transaction failed: {exc}") from exc

        tx_id = str(signature)
        logger.info("Anchored %s hash %s in transaction %s", media_type, video_hash, tx_id)
        return tx_id

    async def fetch_parsed_transaction(self, tx_id: str) -> dict[str, Any] | None:
        """Return the jsonParsed transaction for ``tx_id`` or None if unknown."""
        state = self.state
        if not isinstance(state, LedgerReady):
            raise LedgerUnavailableError("Solana verification is unavailable")

        try:
            signature = Signature.from_string(tx_id)
        except Exception:
            logger.warning("Stored transaction id %r is not a valid signature", tx_id)
            return None

        try:
            response = await state.rpc.get_transaction(
                signature,
                encoding="jsonParsed",
                commitment=Confirmed,
                max_supported_transaction_version=0,
            )
        except Exception as exc:
            raise LedgerFetchError(f"Transaction lookup failed: {exc}") from exc

        if response.value is None:
            return None
        return _transaction_to_dict(response.value)

    async def verify_anchored_hash(
        self,
        *,
        tx_id: str,
        media_type: str,
        video_hash: str,
        request_client_id: str,
    ) -> bool:
        """Check that ``tx_id`` is our memo transaction for this submission.

        Returns False when the transaction is missing, was not signed by this
        service's key, or carries no memo with matching ``m``/``h``/``c``.

        Raises:
            LedgerUnavailableError: If anchoring is disabled.
            LedgerFetchError: If the RPC lookup itself failed.
        """
        parsed = await self.fetch_parsed_transaction(tx_id)
        if parsed is None:
            return False

        message = (parsed.get("transaction") or {}).get("message") or {}
        account_keys = message.get("accountKeys") or []
        signer_key = self.signer_public_key
        if not any(_account_key_text(entry) == signer_key for entry in account_keys):
            return False

        return has_matching_memo(
            message.get("instructions") or [],
            media_type=media_type,
            video_hash=video_hash,
            request_client_id=request_client_id,
        )

    async def aclose(self) -> None:
        """Close the underlying RPC client, if any."""
        if isinstance(self.state, LedgerReady):
            await self.state.rpc.close()
