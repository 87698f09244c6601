from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from realms_governance.types import Network

ADRENA_REALM = "GWe1VYTRMujAtGVhSLwSn4YPsXBLe5qfkzNAYAKD44Nk"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: str = "dev"
    log_level: str = "INFO"

    solana_devnet_rpc_url: str = "https://api.devnet.solana.com"
    solana_mainnet_rpc_url: str = "https://api.mainnet-beta.solana.com"
    rpc_timeout_seconds: float = 30.0
    rpc_commitment: str = "confirmed"
    default_network: Network = Network.MAINNET

    governance_program_id: str = "GovER5Lthms3bLBqWub97yVrMmEogzX7xNjdXpPPCVZw"
    governance_program_version: int = 3

    proposal_cache_ttl_seconds: float = 300.0
    governance_overrides: dict[str, list[str]] = {
        ADRENA_REALM: [
            "HgeoVqTTMQ9K5GZAUpPKaz5PS8Rn55yR5e5SwmB3DbKB",
            "HbzDAYnhidh35woSLmbqCgvjc52ZUPPQfN1fGDa7CTXx",
        ],
    }

    watched_realms: list[str] = []
    watch_interval_seconds: float = 60.0

    metadata_allowed_domains: list[str] = [
        "gateway.irys.xyz",
        "arweave.net",
        "ar-io.net",
        "gist.github.com",
        "raw.githubusercontent.com",
        "github.com",
        "docs.google.com",
        "ipfs.io",
        "cloudflare-ipfs.com",
    ]
    metadata_timeout_seconds: float = 8.0
    metadata_max_description_chars: int = 2000

    def rpc_url_for(self, network: Network) -> str:
        if network == Network.DEVNET:
            return self.solana_devnet_rpc_url
        return self.solana_mainnet_rpc_url


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()
