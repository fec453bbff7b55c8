from __future__ import annotations

import sys

from .config import get_agent_api_key, get_agent_api_url, get_agent_id, get_channel


def main() -> None:
    if get_agent_api_key() is None:
        print("AGENT_API_KEY is not set", file=sys.stderr)
        raise SystemExit(1)
    print(f"OK agent={get_agent_id()} channel=#{get_channel()} url={get_agent_api_url()}")


if __name__ == "__main__":
    main()
