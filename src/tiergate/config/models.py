"""Pydantic models for tiergate configuration.

This module defines the configuration schema using Pydantic v2.
All configuration validation happens through these models.

Classes:
    TierConfig: One provider tier of the escalation chain
    RouterConfig: Ordered tiers and the escalation switch
    GateConfig: Quality threshold and penalty overrides
    VariantConfig: One arm of an A/B experiment
    ExperimentConfig: A named experiment with its fallback tier
    ProviderCredentials: API credentials for a single provider
    CredentialsConfig: All provider credentials
    LoggingConfig: Logging configuration
    TiergateConfig: Top-level configuration combining all sections
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from tiergate.gate.policy import ScoringPolicy


class TierConfig(BaseModel, frozen=True):
    """Configuration for one provider tier.

    Attributes:
        name: Tier name, unique within the chain
        provider: Provider name (minimax, openai, anthropic, openrouter, ...)
        model: Model identifier string
        cost_factor: Relative cost; tiers are tried cheapest first
        max_tokens: Generation limit for this tier
        temperature: Sampling temperature
        timeout_seconds: Per-call timeout; exceeding it counts as a provider failure
        skip_if_unconfigured: Skip this tier (with a warning) when its key is missing
        api_base: Optional endpoint override
        system_prompt: Optional system prompt override
    """

    name: str = Field(min_length=1)
    provider: str = Field(min_length=1)
    model: str = Field(min_length=1)
    cost_factor: float = Field(default=1.0, gt=0)
    max_tokens: int = Field(default=8192, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    timeout_seconds: float = Field(default=120.0, gt=0)
    skip_if_unconfigured: bool = False
    api_base: str | None = None
    system_prompt: str | None = None


class RouterConfig(BaseModel, frozen=True):
    """Escalation router configuration.

    Attributes:
        tiers: Provider tiers; ordered by cost_factor at build time
        allow_escalation: Whether a failed gate moves on to the next tier
    """

    tiers: list[TierConfig] = Field(default_factory=list)
    allow_escalation: bool = True

    @field_validator("tiers")
    @classmethod
    def validate_unique_names(cls, v: list[TierConfig]) -> list[TierConfig]:
        """Validate that tier names are unique."""
        names = [t.name for t in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            msg = f"Duplicate tier names: {duplicates}"
            raise ValueError(msg)
        return v


class GateConfig(BaseModel, frozen=True):
    """Quality gate configuration.

    Attributes:
        threshold: Minimum composite score that passes the gate
        penalties: Overrides for ScoringPolicy numeric fields
    """

    threshold: float = Field(default=0.70, ge=0.0, le=1.0)
    penalties: dict[str, float] = Field(default_factory=dict)

    @field_validator("penalties")
    @classmethod
    def validate_penalty_names(cls, v: dict[str, float]) -> dict[str, float]:
        """Validate that every override names a ScoringPolicy field."""
        unknown = sorted(set(v) - ScoringPolicy.tunable_fields())
        if unknown:
            msg = f"Unknown scoring policy fields: {unknown}"
            raise ValueError(msg)
        return v

    def build_policy(self) -> ScoringPolicy:
        """Return the default ScoringPolicy with the overrides applied."""
        return ScoringPolicy().with_overrides(self.penalties)


class VariantConfig(BaseModel, frozen=True):
    """One experiment variant.

    Attributes:
        id: Variant identifier, unique within the experiment
        provider: Name of the tier the variant runs on
        weight: Relative traffic weight; missing counts as 1
        system_prompt: Optional system prompt override
        model: Optional model override
        quality_threshold: Gate threshold for this variant
        output_schema: Name of a built-in output schema ("units") or None
    """

    id: str = Field(min_length=1)
    provider: str = Field(min_length=1)
    weight: float | None = None
    system_prompt: str | None = None
    model: str | None = None
    quality_threshold: float = Field(default=0.70, ge=0.0, le=1.0)
    output_schema: Literal["units"] | None = None


class ExperimentConfig(BaseModel, frozen=True):
    """A configured A/B experiment.

    Attributes:
        name: Experiment name
        fallback: Tier used when a variant fails the gate
        min_samples: Samples a variant needs before it can win
        optimize_for: Winner scoring objective
        variants: Experiment arms
    """

    name: str = Field(min_length=1)
    fallback: str = Field(min_length=1)
    min_samples: int = Field(default=5, ge=1)
    optimize_for: Literal["quality", "cost", "latency"] = "quality"
    variants: list[VariantConfig] = Field(default_factory=list)


class ProviderCredentials(BaseModel, frozen=True):
    """API credentials for a single provider.

    Attributes:
        api_key: The API key for the provider
        base_url: Optional custom base URL for the provider
    """

    api_key: str = Field(min_length=1)
    base_url: str | None = None


class CredentialsConfig(BaseModel, frozen=True):
    """Configuration for all provider credentials.

    Attributes:
        providers: Dict mapping provider name to credentials
    """

    providers: dict[str, ProviderCredentials] = Field(default_factory=dict)


class LoggingConfig(BaseModel, frozen=True):
    """Logging configuration.

    Attributes:
        level: Log level (debug, info, warning, error)
        mode: dev for console output, prod for JSON lines
        enable_file_logging: Whether to also write rotated log files
    """

    level: Literal["debug", "info", "warning", "error"] = "warning"
    mode: Literal["dev", "prod"] = "dev"
    enable_file_logging: bool = False


class TiergateConfig(BaseModel, frozen=True):
    """Top-level tiergate configuration.

    Validates against config.yaml in ~/.tiergate/.

    Attributes:
        router: Tier chain and escalation settings
        gate: Quality gate settings
        experiments: Configured A/B experiments
        logging: Logging configuration
    """

    router: RouterConfig = Field(default_factory=RouterConfig)
    gate: GateConfig = Field(default_factory=GateConfig)
    experiments: list[ExperimentConfig] = Field(default_factory=list)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def validate_experiment_tiers(self) -> "TiergateConfig":
        """Validate that experiments only reference configured tiers."""
        tier_names = {t.name for t in self.router.tiers}
        for experiment in self.experiments:
            referenced = {experiment.fallback} | {v.provider for v in experiment.variants}
            missing = sorted(referenced - tier_names)
            if missing:
                msg = f"Experiment '{experiment.name}' references unknown tiers: {missing}"
                raise ValueError(msg)
        return self

    def get_experiment(self, name: str) -> ExperimentConfig | None:
        """Return the experiment with the given name, if configured."""
        return next((e for e in self.experiments if e.name == name), None)


def get_default_config() -> TiergateConfig:
    """Get the default tiergate configuration.

    Returns:
        TiergateConfig with the cheap-to-expensive default chain.
    """
    return TiergateConfig(
        router=RouterConfig(
            tiers=[
                TierConfig(
                    name="minimax",
                    provider="minimax",
                    model="MiniMax-Text-01",
                    cost_factor=1,
                    timeout_seconds=60.0,
                    skip_if_unconfigured=True,
                ),
                TierConfig(
                    name="openai",
                    provider="openai",
                    model="gpt-4o",
                    cost_factor=10,
                ),
                TierConfig(
                    name="anthropic",
                    provider="anthropic",
                    model="claude-opus-4-20250514",
                    cost_factor=60,
                    max_tokens=4096,
                ),
            ],
        ),
        experiments=[
            ExperimentConfig(
                name="minimax-vs-openai",
                fallback="anthropic",
                variants=[
                    VariantConfig(id="minimax-default", provider="minimax", weight=0.5),
                    VariantConfig(id="openai-default", provider="openai", weight=0.5),
                ],
            ),
        ],
    )


def get_default_credentials() -> CredentialsConfig:
    """Get the default credentials configuration template.

    Returns:
        CredentialsConfig with placeholder providers.

    Note:
        The returned credentials carry placeholder API keys and should be
        filled in by the user.
    """
    return CredentialsConfig(
        providers={
            "minimax": ProviderCredentials(api_key="YOUR_MINIMAX_API_KEY"),
            "openai": ProviderCredentials(api_key="YOUR_OPENAI_API_KEY"),
            "anthropic": ProviderCredentials(api_key="YOUR_ANTHROPIC_API_KEY"),
        }
    )


def get_config_dir() -> Path:
    """Get the tiergate configuration directory path.

    Returns:
        Path to ~/.tiergate/
    """
    return Path.home() / ".tiergate"
