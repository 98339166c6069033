"""getNft query: resource budget, off-loop call with timeout, two-layer decode."""

import asyncio, logging, time
from dataclasses import dataclass
from typing import Any, Callable, Union
from pydantic import BaseModel, ValidationError
from substrateinterface import Keypair

from .binding import ContractHandle, RawCallResult, query
from .errors import TransportError

logger = logging.getLogger("nftgate.chain")

GET_NFT = "get_nft"
U32_MAX = 2 ** 32 - 1


class NftRecord(BaseModel):
    username: str
    item: Any = None


@dataclass(frozen=True)
class ResourceBudget:
    ref_time: int
    proof_size: int

    def as_weight(self) -> dict:
        return {"ref_time": self.ref_time, "proof_size": self.proof_size}


# ---------- QueryOutcome ----------
@dataclass(frozen=True)
class Ok:
    record: NftRecord


@dataclass(frozen=True)
class Err:
    reason: TransportError


@dataclass(frozen=True)
class Empty:
    pass


QueryOutcome = Union[Ok, Err, Empty]


def _unwrap(value: Any, tag: str) -> Any:
    if isinstance(value, dict) and len(value) == 1 and tag in value:
        return value[tag]
    return value


def decode_outcome(raw: RawCallResult) -> QueryOutcome:
    """Turn a raw get_nft response into Ok/Err/Empty.

    Layer one is the ink! MessageResult (``{"Ok": ...}`` or ``{"Err": LangError}``),
    layer two the contract's ``Option<NFT>``. Pre-ink!4 metadata has no first layer.
    """
    if not raw.success:
        return Empty()
    value = raw.value
    if isinstance(value, dict) and len(value) == 1 and "Err" in value:
        logger.info("[NFT] message rejected | err=%s", value["Err"])
        return Empty()
    value = _unwrap(value, "Ok")
    value = _unwrap(value, "Some")
    if value is None or value == "None":
        return Empty()
    try:
        return Ok(NftRecord.model_validate(value))
    except ValidationError as e:
        return Err(TransportError(f"malformed NFT record: {e}"))


def parse_token_id(token_id: str) -> Union[int, None]:
    """The contract keys NFTs by u32; anything else can never match a record.

    Accepts plain decimal digits only, surrounding whitespace ignored. Hex
    (``0x07``), signs and exponents are rejected, so one token has exactly one
    spelling in the query string.
    """
    text = str(token_id).strip()
    if not (text.isascii() and text.isdigit()):
        return None
    n = int(text)
    return n if n <= U32_MAX else None


class NftQueryExecutor:
    def __init__(self, handle: ContractHandle, budget: ResourceBudget, origin: str,
                 timeout: float = 5.0, call: Callable[..., RawCallResult] = query):
        self.handle = handle
        self.budget = budget
        self.caller = Keypair(ss58_address=origin)
        self.timeout = timeout
        self._call = call

    def _query(self, token: int, deadline: float) -> RawCallResult:
        # runs in a worker thread; a request that already timed out must not reach the node
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TransportError("get_nft dropped: deadline passed before the call")
        return self._call(self.handle, GET_NFT, self.budget, self.caller, lock_timeout=remaining, token_id=token)

    async def get_nft(self, token_id: str) -> QueryOutcome:
        token = parse_token_id(token_id)
        if token is None:
            logger.debug("[NFT] token_id=%r is not a u32, no chain call", token_id)
            return Empty()

        loop = asyncio.get_running_loop()
        deadline = time.monotonic() + self.timeout
        try:
            raw = await asyncio.wait_for(loop.run_in_executor(None, self._query, token, deadline), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("[NFT] get_nft timed out | token=%s timeout=%.1fs", token, self.timeout)
            return Err(TransportError(f"get_nft timed out after {self.timeout}s"))
        except TransportError as e:
            logger.error("[NFT] get_nft transport failure | token=%s err=%s", token, e)
            return Err(e)

        outcome = decode_outcome(raw)
        if isinstance(outcome, Ok):
            logger.info("[NFT] token=%s record=%s", token, outcome.record.model_dump())
        elif isinstance(outcome, Err):
            logger.error("[NFT] token=%s %s | raw=%r", token, outcome.reason, raw.value)
        return outcome
