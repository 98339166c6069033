import asyncio, os, sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from chain.executor import Empty, Err, Ok, QueryOutcome
from chain.settings import configure_logging, load_settings
from run_api import build_chain


def render(token_id: str, outcome: QueryOutcome) -> str:
    if isinstance(outcome, Ok):
        return f"get_nft({token_id}): username={outcome.record.username} item={outcome.record.item}"
    if isinstance(outcome, Err):
        return f"get_nft({token_id}): error: {outcome.reason}"
    return f"get_nft({token_id}): not found"


def main(argv) -> int:
    token_id = argv[1] if len(argv) > 1 else "0"
    settings = load_settings()
    configure_logging(settings)
    chain = build_chain(settings)
    try:
        outcome = asyncio.run(chain.executor.get_nft(token_id))
    finally:
        chain.close()
    print(render(token_id, outcome))
    return 0 if isinstance(outcome, Ok) else 1


if __name__ == "__main__":
    sys.exit(main(sys.argv))
