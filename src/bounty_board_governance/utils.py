"""
Utility functions for ledger interaction.
"""

import re
from typing import Any, Dict, Tuple, Type

import base58
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential


def validate_address(address: str) -> bool:
    """Validate base58 account address format"""
    # Solana addresses are base58 encoded and 32-44 chars
    return bool(re.match(r'^[1-9A-HJ-NP-Za-km-z]{32,44}$', address))


def retry_with_backoff(max_retries: int = 3,
                       transient: Tuple[Type[BaseException], ...] = (Exception,),
                       max_wait: float = 2.0) -> AsyncRetrying:
    """
    Retry policy for idempotent ledger reads.

    Usage:
        async for attempt in retry_with_backoff(3, (SolanaRpcException,)):
            with attempt:
                resp = await client.get_account_info(address)
    """
    return AsyncRetrying(
        retry=retry_if_exception_type(transient),
        stop=stop_after_attempt(max(1, max_retries)),
        wait=wait_exponential(multiplier=0.2, max=max_wait),
        reraise=True,
    )


def describe_instruction(instruction) -> Dict[str, Any]:
    """Loggable view of a RawInstruction"""
    return {
        "program_id": str(instruction.program_id),
        "data": base58.b58encode(instruction.data).decode(),
        "accounts": [
            {
                "address": str(meta.address),
                "is_signer": meta.is_signer,
                "is_writable": meta.is_writable,
            }
            for meta in instruction.accounts
        ],
    }
