import os, sys
from typing import List, Mapping

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from chain.errors import StartupError
from chain.settings import Settings, load_settings


def collect_errors(env: Mapping[str, str]) -> List[str]:
    try:
        settings = load_settings(env)
    except StartupError as e:
        return [str(e)]
    return check(settings)


def check(settings: Settings) -> List[str]:
    errors = []
    if not settings.ws_url.startswith(("ws://", "wss://")):
        errors.append("SUBSTRATE_WS_URL must start with ws:// or wss://")
    if not os.path.isfile(settings.abi_path):
        errors.append(f"NFT_ABI_PATH not found: {settings.abi_path}")
    if not settings.contract_address.strip():
        errors.append("NFT_CONTRACT is empty")
    if not settings.query_origin.strip():
        errors.append("QUERY_ORIGIN is empty")
    return errors


if __name__ == "__main__":
    from dotenv import load_dotenv
    load_dotenv()
    errors = collect_errors(os.environ)
    if errors:
        print("Env check FAILED:")
        for e in errors:
            print(" -", e)
        sys.exit(1)
    settings = load_settings(os.environ)
    print("Env check OK.")
    print("Node:", settings.ws_url)
    print("Contract:", settings.contract_address)
