"""Configuration settings using Pydantic Settings.

Provides typed engine configuration with environment variable support. The
process-wide default driver and descriptor cache are created from these
settings on first use.

Usage:
    from graphclone.config import EngineSettings

    # Load from environment variables (GRAPHCLONE_*)
    settings = EngineSettings()

    # Or override with explicit values
    settings = EngineSettings(access_strategy="portable", clone_transient_fields=False)
    driver = CloneDriver(settings.clone_config())
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

try:
    from pydantic_settings import BaseSettings, SettingsConfigDict
except ImportError as e:
    raise ImportError(
        "pydantic-settings is required for the config module. "
        "Install with: pip install graphclone"
    ) from e

if TYPE_CHECKING:
    from graphclone.cloning.models import CloneConfig
    from graphclone.structural.models import EqualsConfig, HashConfig


class EngineSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for the default clone driver and structural algorithms.

    Attributes:
        access_strategy: Field access strategy (auto, portable, direct).
        clone_transient_fields: Copy fields listed in `__transient__`.
        clone_transient_annotated_fields: Copy `Annotated[T, Transient]` fields.
        clone_synthetic_fields: Clone dunder fields instead of sharing them.
        clone_immutable: Copy user classes detected immutable.
        use_custom_clone_operations: Honour `@cloner` hooks and `clone_with`.
        use_clone_implementors: Consult registered implementors.
        use_copy_protocol: Honour `__deepcopy__`.
        deep_reflect: Structural equals/hash recurse into object fields.
        hash_seed: Initial structural hash total (odd, non-zero).
        hash_multiplier: Structural hash multiplier (odd, non-zero).

    Environment Variables:
        GRAPHCLONE_ACCESS_STRATEGY
        GRAPHCLONE_CLONE_TRANSIENT_FIELDS
        GRAPHCLONE_CLONE_TRANSIENT_ANNOTATED_FIELDS
        GRAPHCLONE_CLONE_SYNTHETIC_FIELDS
        GRAPHCLONE_CLONE_IMMUTABLE
        GRAPHCLONE_USE_CUSTOM_CLONE_OPERATIONS
        GRAPHCLONE_USE_CLONE_IMPLEMENTORS
        GRAPHCLONE_USE_COPY_PROTOCOL
        GRAPHCLONE_DEEP_REFLECT
        GRAPHCLONE_HASH_SEED
        GRAPHCLONE_HASH_MULTIPLIER
    """

    model_config = SettingsConfigDict(
        env_prefix="GRAPHCLONE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    access_strategy: Literal["auto", "portable", "direct"] = "auto"
    clone_transient_fields: bool = True
    clone_transient_annotated_fields: bool = False
    clone_synthetic_fields: bool = False
    clone_immutable: bool = False
    use_custom_clone_operations: bool = True
    use_clone_implementors: bool = True
    use_copy_protocol: bool = False
    deep_reflect: bool = False
    hash_seed: int = 17
    hash_multiplier: int = 37

    def clone_config(self) -> CloneConfig:
        from graphclone.cloning.models import CloneConfig

        return CloneConfig(
            clone_transient_fields=self.clone_transient_fields,
            clone_transient_annotated_fields=self.clone_transient_annotated_fields,
            clone_synthetic_fields=self.clone_synthetic_fields,
            clone_immutable=self.clone_immutable,
            use_custom_clone_operations=self.use_custom_clone_operations,
            use_clone_implementors=self.use_clone_implementors,
            use_copy_protocol=self.use_copy_protocol,
        )

    def equals_config(self) -> EqualsConfig:
        from graphclone.structural.models import EqualsConfig

        return EqualsConfig(deep_reflect=self.deep_reflect)

    def hash_config(self) -> HashConfig:
        """Build the hash configuration.

        Raises:
            IllegalArgumentError: If the seed or multiplier is even or zero.
        """
        from graphclone.structural.models import HashConfig

        return HashConfig(
            deep_reflect=self.deep_reflect,
            seed=self.hash_seed,
            multiplier=self.hash_multiplier,
        )
