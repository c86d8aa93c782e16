"""
Configuration classes for the competitor pricing agent tools.
Defines analysis defaults and approval thresholds in a type-safe, extensible way.
"""

from dataclasses import dataclass, field

from utils.env import env_float, env_int, env_str, load_project_dotenv


@dataclass
class PricingAnalysisConfig:
    default_min_price_diff: float = 10.0
    default_gap_days: int = 30
    default_trend_days: int = 90
    default_trend_group_by: str = "week"
    suggestion_window_days: int = 30
    default_max_change_percent: float = 20.0
    premium_markup: float = 1.10  # PREMIUM: 10% above highest competitor
    budget_discount: float = 0.90  # BUDGET: 10% below lowest competitor


@dataclass
class ApprovalConfig:
    # Notes longer than this always need a human decision
    note_length_threshold: int = 200


@dataclass
class AppConfig:
    log_level: str = "INFO"
    pricing: PricingAnalysisConfig = field(default_factory=PricingAnalysisConfig)
    approval: ApprovalConfig = field(default_factory=ApprovalConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Build the configuration from environment variables, reading the
        project `.env` first. Unset variables keep the dataclass defaults.
        """
        load_project_dotenv()
        pricing_defaults = PricingAnalysisConfig()
        approval_defaults = ApprovalConfig()
        return cls(
            log_level=env_str("PRICING_AGENT_LOG_LEVEL", "INFO").upper(),
            pricing=PricingAnalysisConfig(
                default_min_price_diff=env_float(
                    "PRICING_MIN_PRICE_DIFF", pricing_defaults.default_min_price_diff
                ),
                default_gap_days=env_int("PRICING_GAP_DAYS", pricing_defaults.default_gap_days),
                default_trend_days=env_int("PRICING_TREND_DAYS", pricing_defaults.default_trend_days),
                default_max_change_percent=env_float(
                    "PRICING_MAX_CHANGE_PERCENT", pricing_defaults.default_max_change_percent
                ),
            ),
            approval=ApprovalConfig(
                note_length_threshold=env_int(
                    "APPROVAL_NOTE_LENGTH_THRESHOLD", approval_defaults.note_length_threshold
                ),
            ),
        )


# Module-level defaults shared by tools and the pricing engine
DEFAULT_CONFIG = AppConfig()
