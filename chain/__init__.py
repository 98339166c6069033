"""Read-only access to the ink! NFT contract."""

from .binding import ContractHandle, RawCallResult, bind, load_interface, query
from .connector import ChainConnection, connect
from .errors import ChainError, StartupError, TransportError
from .executor import Empty, Err, NftQueryExecutor, NftRecord, Ok, QueryOutcome, ResourceBudget

__all__ = [
    "ChainConnection", "connect",
    "ContractHandle", "RawCallResult", "bind", "load_interface", "query",
    "ChainError", "StartupError", "TransportError",
    "Empty", "Err", "NftQueryExecutor", "NftRecord", "Ok", "QueryOutcome", "ResourceBudget",
]
