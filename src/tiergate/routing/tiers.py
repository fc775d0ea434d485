"""Provider tiers of the escalation chain.

A ProviderTier binds a configured tier to the adapter that serves it. Tiers
whose credential is missing carry no adapter; the router reports that as a
ConfigError when it reaches them, or skips them when the tier opted into
skip_if_unconfigured.

Usage:
    from tiergate.routing.tiers import build_tiers

    tiers = build_tiers(config, credentials)
    router = EscalationRouter(tiers, gate)
"""

from collections.abc import Sequence
from dataclasses import dataclass

from tiergate.config.loader import resolve_api_key
from tiergate.config.models import CredentialsConfig, TierConfig, TiergateConfig
from tiergate.providers.base import CompletionConfig, LLMAdapter
from tiergate.providers.factory import create_adapter
from tiergate.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ProviderTier:
    """One tier of the escalation chain.

    Attributes:
        name: Tier name.
        model: Model requested from the adapter.
        adapter: Adapter serving the tier; None when its credential is missing.
        cost_factor: Relative cost; the router tries cheaper tiers first.
        system_prompt: System prompt override; None uses the default prompt.
        max_tokens: Generation limit.
        temperature: Sampling temperature.
        timeout_seconds: Per-call timeout.
        skip_if_unconfigured: Skip instead of failing when adapter is None.
    """

    name: str
    model: str
    adapter: LLMAdapter | None
    cost_factor: float = 1.0
    system_prompt: str | None = None
    max_tokens: int = 8192
    temperature: float = 0.7
    timeout_seconds: float = 120.0
    skip_if_unconfigured: bool = False

    @property
    def is_configured(self) -> bool:
        return self.adapter is not None

    def completion_config(self) -> CompletionConfig:
        return CompletionConfig(
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )


def order_tiers(tiers: Sequence[ProviderTier]) -> list[ProviderTier]:
    """Sort tiers by ascending cost_factor, keeping configured order on ties."""
    return sorted(tiers, key=lambda t: t.cost_factor)


def build_tier(tier_config: TierConfig, credentials: CredentialsConfig | None) -> ProviderTier:
    """Build one ProviderTier, creating its adapter when a key is available."""
    api_key = resolve_api_key(tier_config.provider, credentials)
    adapter: LLMAdapter | None = None
    if api_key:
        api_base = tier_config.api_base
        if api_base is None and credentials is not None:
            entry = credentials.providers.get(tier_config.provider)
            api_base = entry.base_url if entry else None
        adapter = create_adapter(
            tier_config.provider,
            api_key=api_key,
            api_base=api_base,
            timeout=tier_config.timeout_seconds,
        )
    else:
        log.debug(
            "tier.credential.missing",
            tier=tier_config.name,
            provider=tier_config.provider,
        )

    return ProviderTier(
        name=tier_config.name,
        model=tier_config.model,
        adapter=adapter,
        cost_factor=tier_config.cost_factor,
        system_prompt=tier_config.system_prompt,
        max_tokens=tier_config.max_tokens,
        temperature=tier_config.temperature,
        timeout_seconds=tier_config.timeout_seconds,
        skip_if_unconfigured=tier_config.skip_if_unconfigured,
    )


def build_tiers(
    config: TiergateConfig,
    credentials: CredentialsConfig | None = None,
) -> list[ProviderTier]:
    """Turn the router configuration into ordered ProviderTier objects.

    Args:
        config: Loaded tiergate configuration.
        credentials: Loaded credentials; environment keys are used as fallback.

    Returns:
        Tiers ordered by cost_factor.
    """
    tiers = order_tiers([build_tier(t, credentials) for t in config.router.tiers])
    log.info(
        "tier.chain.built",
        tiers=[t.name for t in tiers],
        configured=[t.name for t in tiers if t.is_configured],
    )
    return tiers
