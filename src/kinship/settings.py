"""Engine configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class LayoutSettings(BaseSettings):
    """Spacing and relaxation constants for the layout engine."""

    model_config = SettingsConfigDict(env_prefix="KINSHIP_LAYOUT_")

    node_spacing: float = 300.0
    spouse_offset: float = 250.0
    generation_gap: float = 200.0
    component_gap: float = 400.0

    relax_iterations: int = 100
    repulsion: float = 20000.0
    attraction: float = 0.1
    target_spacing: float = 150.0
    damping: float = 0.85
    seed_radius: float = 300.0


class DerivationSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="KINSHIP_DERIVE_")

    # blood hops allowed on either side of a marriage when naming in-laws
    in_law_radius: int = 2


class ValidationSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="KINSHIP_VALIDATE_")

    min_parent_age: int = 12


class Settings(BaseSettings):
    """Main engine settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    layout: LayoutSettings = LayoutSettings()
    derivation: DerivationSettings = DerivationSettings()
    validation: ValidationSettings = ValidationSettings()


settings = Settings()
