import json, logging
from dataclasses import dataclass
from typing import Any, Optional
from substrateinterface import Keypair
from substrateinterface.contracts import ContractInstance, ContractMetadata
from substrateinterface.exceptions import (
    ContractMetadataParseException, ContractReadFailedException, SubstrateRequestException,
)
from scalecodec.exceptions import RemainingScaleBytesNotEmptyException
from websocket import WebSocketException

from .connector import ChainConnection
from .errors import StartupError, TransportError

logger = logging.getLogger("nftgate.chain")

# pallet-contracts ReturnFlags
REVERT_FLAG = 1


@dataclass(frozen=True)
class ContractHandle:
    address: str
    interface: dict
    connection: ChainConnection
    instance: ContractInstance


@dataclass(frozen=True)
class RawCallResult:
    """Undecoded outcome of one dry-run call.

    ``success`` is the outer discriminant (the call neither failed in the
    runtime nor reverted); ``value`` is whatever the message returned.
    """
    success: bool
    value: Any = None


def load_interface(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise StartupError(f"cannot load contract ABI from {path}: {e}") from e


def bind(connection: ChainConnection, address: str, interface: dict) -> ContractHandle:
    try:
        metadata = ContractMetadata(metadata_dict=interface, substrate=connection.substrate)
    except (ContractMetadataParseException, KeyError, ValueError) as e:
        raise StartupError(f"invalid contract ABI: {e}") from e
    instance = ContractInstance(contract_address=address, metadata=metadata, substrate=connection.substrate)
    return ContractHandle(address=address, interface=interface, connection=connection, instance=instance)


def query(handle: ContractHandle, method: str, budget: Any, caller: Keypair,
          lock_timeout: float = -1, **args) -> RawCallResult:
    """Dry-run ``method`` against the contract.

    ``budget`` is anything with ``as_weight()``; the storage deposit limit is
    left unbounded. ``lock_timeout`` bounds the wait for the shared connection
    (-1 waits forever). Raises TransportError when the connection stays busy,
    the node cannot be reached, or it answers with something that does not
    decode as a contract result.
    """
    lock = handle.connection.lock
    if not lock.acquire(timeout=lock_timeout):
        raise TransportError(f"{method} not sent: connection busy for {lock_timeout:.2f}s")
    try:
        result = handle.instance.read(caller, method, args=args or None, gas_limit=budget.as_weight())
    except ContractReadFailedException as e:
        logger.info("[CHAIN] %s failed in runtime | contract=%s err=%s", method, handle.address, e)
        return RawCallResult(success=False, value=e.args[0] if e.args else None)
    except (SubstrateRequestException, WebSocketException, OSError) as e:
        raise TransportError(f"{method} call failed: {e}") from e
    except (ValueError, RemainingScaleBytesNotEmptyException) as e:
        # scale decoding of the return data, or a garbled json frame
        raise TransportError(f"undecodable {method} response: {e}") from e
    finally:
        lock.release()

    try:
        outcome = result.value["result"]["Ok"]
        flags = _flag_bits(outcome.get("flags"))
        data = outcome.get("data")
    except (AttributeError, KeyError, TypeError) as e:
        raise TransportError(f"unexpected {method} response: {e}") from e
    if flags & REVERT_FLAG:
        logger.info("[CHAIN] %s reverted | contract=%s data=%s", method, handle.address, data)
        return RawCallResult(success=False, value=data)
    return RawCallResult(success=True, value=data)


def _flag_bits(flags: Optional[Any]) -> int:
    # scale-codec renders ReturnFlags as raw bits, {"bits": n} or a list of flag names
    if isinstance(flags, (list, tuple)):
        return REVERT_FLAG if "REVERT" in flags else 0
    if isinstance(flags, dict):
        flags = flags.get("bits", 0)
    try:
        return int(flags or 0)
    except (TypeError, ValueError):
        return 0
