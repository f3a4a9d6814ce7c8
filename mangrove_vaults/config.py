"""Runtime settings loaded from the environment (and an optional .env file)."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from mangrove_vaults.constants import DEFAULT_SAVE_FILE, DEFAULT_TIMEOUT
from mangrove_vaults.registry import Chain


@dataclass(frozen=True)
class Settings:
    private_key: str
    # Explicit per-chain RPC overrides, keyed by the registry's env var name.
    rpc_urls: dict[str, str]
    fallback_rpc_url: str | None
    save_file: str
    rpc_timeout: int
    read_only: bool

    # Aggregators only reachable through their own SDK-style APIs.
    kame_contract: str | None
    kame_api_url: str | None
    symphony_contract: str | None
    symphony_api_url: str | None

    def rpc_url_for(self, chain: Chain) -> str:
        """Chain-specific RPC, then ETH_RPC_URL, then the chain's public endpoint."""
        return self.rpc_urls.get(chain.rpc_env) or self.fallback_rpc_url or chain.rpc_url


def _bool(s: str | None) -> bool:
    return str(s or "").strip().lower() in ("1", "true", "yes", "y", "on")


def _opt(s: str | None) -> str | None:
    s = (s or "").strip()
    return s or None


def get_settings(*, dotenv: bool = True) -> Settings:
    if dotenv:
        load_dotenv()
    rpc_urls = {
        name: os.environ[name].strip()
        for name in ("ARBITRUM_RPC_URL", "BASE_RPC_URL")
        if os.environ.get(name, "").strip()
    }
    return Settings(
        private_key=os.environ.get("PRIVATE_KEY", "").strip(),  # empty means read-only
        rpc_urls=rpc_urls,
        fallback_rpc_url=_opt(os.environ.get("ETH_RPC_URL")),
        save_file=os.environ.get("MANGROVE_VAULTS_SAVE_FILE", DEFAULT_SAVE_FILE),
        rpc_timeout=int(os.environ.get("RPC_TIMEOUT", str(DEFAULT_TIMEOUT))),
        read_only=_bool(os.environ.get("READ_ONLY_MODE")),
        kame_contract=_opt(os.environ.get("KAME_CONTRACT")),
        kame_api_url=_opt(os.environ.get("KAME_API_URL")),
        symphony_contract=_opt(os.environ.get("SYMPHONY_CONTRACT")),
        symphony_api_url=_opt(os.environ.get("SYMPHONY_API_URL")),
    )
