"""Application configuration using pydantic-settings.

Settings are read from environment variables (and a local .env file) once,
then turned into an explicit SwapConfig that is handed to every component.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pairswap.exceptions import ConfigurationError

# Permit2 is deployed at the same address on every supported chain
PERMIT2_ADDRESS = "0x000000000022D473030F116dDEE9F6B43aC78BA3"

# 1inch Router v6
ONEINCH_ROUTERS = {
    137: "0x1111111254fb6c44bac0bed2854e76f90643097d",
}


@dataclass(frozen=True)
class TokenInfo:
    """A configured token."""

    symbol: str
    address: str
    decimals: int
    usd_pegged: bool = False
    coingecko_id: Optional[str] = None
    fiat_code: Optional[str] = None


@dataclass(frozen=True)
class AggregatorEndpoint:
    """Base URL and credentials of an aggregator API."""

    base_url: str
    api_key: Optional[str] = None
    api_version: Optional[str] = None
    request_delay: float = 0.0


@dataclass
class SwapConfig:
    """Explicit lookup tables shared by all swap components.

    Tokens are keyed by lowercase address, routers by chain id. Every lookup
    miss raises ConfigurationError.
    """

    chain_id: int
    tokens: dict[str, TokenInfo]
    oneinch: AggregatorEndpoint
    zeroex: AggregatorEndpoint
    threshold_usd: Decimal = Decimal("100")
    routers: dict[int, str] = field(default_factory=lambda: dict(ONEINCH_ROUTERS))
    permit2_address: str = PERMIT2_ADDRESS
    explorer_tx_url: str = "https://polygonscan.com/tx/"
    http_timeout: float = 30.0

    def token(self, address: str) -> TokenInfo:
        """Get token info by contract address."""
        info = self.tokens.get(address.lower())
        if info is None:
            raise ConfigurationError(f"Token not configured: {address}")
        return info

    def decimals(self, address: str) -> int:
        return self.token(address).decimals

    def symbol(self, address: str) -> str:
        return self.token(address).symbol

    def router_address(self, chain_id: int) -> str:
        """Get the 1inch router (spender) for a chain."""
        router = self.routers.get(chain_id)
        if router is None:
            raise ConfigurationError(f"Spender address not configured for chain ID: {chain_id}")
        return router

    def explorer_url(self, tx_hash: str) -> str:
        return f"{self.explorer_tx_url}{tx_hash}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Wallet
    # ======================
    private_key: Optional[str] = Field(default=None, description="Wallet private key (hex)")
    wallet_address: Optional[str] = Field(
        default=None, description="Wallet address (derived from private key when empty)"
    )

    # ======================
    # Chain
    # ======================
    chain_id: int = Field(default=137, description="Chain ID (137 = Polygon)")
    rpc_url: str = Field(default="https://polygon-rpc.com", description="JSON-RPC endpoint")
    block_explorer_tx_url: str = Field(
        default="https://polygonscan.com/tx/", description="Block explorer transaction URL prefix"
    )

    # ======================
    # Tokens
    # ======================
    token_a_symbol: str = Field(default="BRLA")
    token_a_address: str = Field(default="0xe6a537a407488807f0bbeb0038b79004f19dddfb")
    token_a_decimals: int = Field(default=18)
    token_a_usd_pegged: bool = Field(default=False)
    token_a_coingecko_id: Optional[str] = Field(default="brazilian-real")
    token_a_fiat_code: Optional[str] = Field(default="BRL")

    token_b_symbol: str = Field(default="USDC")
    token_b_address: str = Field(default="0x2791bca1f2de4661ed88a30c99a7a9449aa84174")
    token_b_decimals: int = Field(default=6)
    token_b_usd_pegged: bool = Field(default=True)
    token_b_coingecko_id: Optional[str] = Field(default="usd-coin")
    token_b_fiat_code: Optional[str] = Field(default=None)

    # ======================
    # Aggregators
    # ======================
    threshold_usd: Decimal = Field(
        default=Decimal("100"),
        description="Swaps at or above this USD value use 0x, below use 1inch",
    )
    oneinch_api_base_url: str = Field(default="https://api.1inch.dev/swap")
    oneinch_api_key: Optional[str] = Field(default=None)
    oneinch_request_delay: float = Field(
        default=1.0, description="Seconds to wait before each 1inch call (public rate limit)"
    )
    oneinch_routers: dict[int, str] = Field(default_factory=lambda: dict(ONEINCH_ROUTERS))
    zeroex_api_base_url: str = Field(default="https://api.0x.org")
    zeroex_api_key: Optional[str] = Field(default=None)
    zeroex_api_version: str = Field(default="v2")
    permit2_address: str = Field(default=PERMIT2_ADDRESS)

    # ======================
    # Runtime
    # ======================
    http_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    debug: bool = Field(default=False, description="Enable debug logging")

    @property
    def has_wallet(self) -> bool:
        """Check if a signing key is configured."""
        return bool(self.private_key)

    def token_a(self) -> TokenInfo:
        return TokenInfo(
            symbol=self.token_a_symbol,
            address=self.token_a_address,
            decimals=self.token_a_decimals,
            usd_pegged=self.token_a_usd_pegged,
            coingecko_id=self.token_a_coingecko_id,
            fiat_code=self.token_a_fiat_code,
        )

    def token_b(self) -> TokenInfo:
        return TokenInfo(
            symbol=self.token_b_symbol,
            address=self.token_b_address,
            decimals=self.token_b_decimals,
            usd_pegged=self.token_b_usd_pegged,
            coingecko_id=self.token_b_coingecko_id,
            fiat_code=self.token_b_fiat_code,
        )

    def swap_config(self) -> SwapConfig:
        """Build the lookup tables passed to swap components."""
        tokens = [self.token_a(), self.token_b()]
        return SwapConfig(
            chain_id=self.chain_id,
            tokens={t.address.lower(): t for t in tokens},
            oneinch=AggregatorEndpoint(
                base_url=self.oneinch_api_base_url.rstrip("/"),
                api_key=self.oneinch_api_key,
                request_delay=self.oneinch_request_delay,
            ),
            zeroex=AggregatorEndpoint(
                base_url=self.zeroex_api_base_url.rstrip("/"),
                api_key=self.zeroex_api_key,
                api_version=self.zeroex_api_version,
            ),
            threshold_usd=self.threshold_usd,
            routers=dict(self.oneinch_routers),
            permit2_address=self.permit2_address,
            explorer_tx_url=self.block_explorer_tx_url,
            http_timeout=self.http_timeout,
        )

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "chain_id": self.chain_id,
            "rpc_url": self.rpc_url,
            "wallet_configured": self.has_wallet,
            "wallet_address": self.wallet_address or "(derived)",
            "tokens": {
                self.token_a_symbol: self.token_a_address,
                self.token_b_symbol: self.token_b_address,
            },
            "threshold_usd": str(self.threshold_usd),
            "oneinch": {
                "url": self.oneinch_api_base_url,
                "api_key": "***" if self.oneinch_api_key else "(not set)",
            },
            "zeroex": {
                "url": self.zeroex_api_base_url,
                "api_key": "***" if self.zeroex_api_key else "(not set)",
                "version": self.zeroex_api_version,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
