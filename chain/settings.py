import os, logging
from typing import Mapping, Optional
from pydantic import BaseModel, Field, ValidationError
from dotenv import load_dotenv

from .errors import StartupError

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DEFAULT_WS_URL = "wss://rococo-contracts-rpc.polkadot.io"
DEFAULT_CONTRACT = "5HL5sE2hGq8bxvkDXL8JQTcZBxt4tKTqgXMCS2yFwGQgKQ75"
# well-known dev account; only its public address is used as the dry-run origin
DEFAULT_ORIGIN = "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"
DEFAULT_ABI_PATH = os.path.join(ROOT_DIR, "abi", "nft_contract.json")


class Settings(BaseModel):
    ws_url: str = DEFAULT_WS_URL
    contract_address: str = Field(DEFAULT_CONTRACT, min_length=1)
    abi_path: str = DEFAULT_ABI_PATH
    query_origin: str = Field(DEFAULT_ORIGIN, min_length=1)
    gas_ref_time: int = Field(1_000_000_000, gt=0)
    gas_proof_size: int = Field(50_000, gt=0)
    query_timeout: float = Field(5.0, gt=0)
    log_level: int = logging.INFO
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000


# ---------- ENV helpers ----------
def resolve_log_level(val: Optional[str]) -> int:
    """Accepts "info", "INFO" or a numeric level like "20"."""
    if val is None:
        return logging.INFO
    try:
        return int(val)
    except (ValueError, TypeError):
        return logging._nameToLevel.get(str(val).strip().upper(), logging.INFO)


def is_truthy(val: Optional[str]) -> bool:
    return str(val or "").strip().lower() in ("1", "true", "yes", "on")


# env var -> Settings field
ENV_KEYS = {
    "SUBSTRATE_WS_URL": "ws_url",
    "NFT_CONTRACT": "contract_address",
    "NFT_ABI_PATH": "abi_path",
    "QUERY_ORIGIN": "query_origin",
    "GAS_REF_TIME": "gas_ref_time",
    "GAS_PROOF_SIZE": "gas_proof_size",
    "CHAIN_QUERY_TIMEOUT": "query_timeout",
    "API_HOST": "host",
    "API_PORT": "port",
}


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the process environment (after reading .env) or from ``env``."""
    if env is None:
        load_dotenv()
        env = os.environ
    raw = {field: env[key].strip() for key, field in ENV_KEYS.items() if env.get(key, "").strip()}
    raw["log_level"] = resolve_log_level(env.get("LOG_LEVEL"))
    raw["debug"] = is_truthy(env.get("DEBUG"))
    try:
        return Settings(**raw)
    except ValidationError as e:
        raise StartupError(f"invalid settings: {e}") from e


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # quiet the chain client unless debug
    if not settings.debug:
        for name in ("substrateinterface", "websocket"):
            logging.getLogger(name).setLevel(logging.WARNING)
