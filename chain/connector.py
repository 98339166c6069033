import logging, threading
from dataclasses import dataclass, field
from typing import Optional
from substrateinterface import SubstrateInterface
from substrateinterface.exceptions import SubstrateRequestException
from websocket import WebSocketException

from .errors import StartupError

logger = logging.getLogger("nftgate.chain")


@dataclass
class ChainConnection:
    """One websocket session to a contracts node, shared by every request.

    SubstrateInterface reads responses off a single socket and is not safe to
    drive from several threads at once; callers hold ``lock`` around each call.
    """
    substrate: SubstrateInterface
    url: str
    chain: Optional[str] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def close(self) -> None:
        logger.info("[CHAIN] closing | url=%s", self.url)
        self.substrate.close()


def connect(endpoint_url: str, timeout: float = 5.0) -> ChainConnection:
    """Open the session. No reconnect: a failure here is fatal to the process."""
    try:
        substrate = SubstrateInterface(
            url=endpoint_url,
            ws_options={"timeout": timeout},
            auto_reconnect=False,
        )
        chain = substrate.chain
    except (SubstrateRequestException, WebSocketException, OSError) as e:
        logger.error("[CHAIN] connect failed | url=%s err=%s", endpoint_url, e)
        raise StartupError(f"cannot connect to {endpoint_url}: {e}") from e
    logger.info("[CHAIN] connected | url=%s chain=%s", endpoint_url, chain)
    return ChainConnection(substrate=substrate, url=endpoint_url, chain=chain)
