"""Configuration loader and validation for reconciliation settings."""

from pathlib import Path
from typing import Any, Optional, Union
import logging

import yaml
from pydantic import BaseModel, Field, ValidationError

from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Strategy identifiers accepted in ``matching.tiers[].strategy``
EXACT_INVOICE = "exact_invoice"
FUZZY_AMOUNT = "fuzzy_amount"
SAME_DATE_FUZZY = "same_date_fuzzy"
KNOWN_STRATEGIES = (EXACT_INVOICE, FUZZY_AMOUNT, SAME_DATE_FUZZY)

DEFAULT_TIERS: list[dict[str, Any]] = [
    {
        "name": "exact_invoice",
        "strategy": EXACT_INVOICE,
        "description": "Identical invoice reference; perfect within tolerance",
        "priority": 1,
        "enabled": True,
        "amount_tolerance": 0.05,
    },
    {
        "name": "fuzzy_code_tight_amount",
        "strategy": FUZZY_AMOUNT,
        "description": "Similar normalized code with near-equal amount",
        "priority": 2,
        "enabled": True,
        "amount_tolerance": 1.00,
        "similarity_threshold": 0.90,
    },
    {
        "name": "same_date_fuzzy_code",
        "strategy": SAME_DATE_FUZZY,
        "description": "Same document date with strongly similar code",
        "priority": 3,
        "enabled": True,
        "similarity_threshold": 0.75,
    },
]


class ColumnRolesConfig(BaseModel):
    """Header keywords used to detect which column plays each role."""

    invoice: list[str] = Field(
        default_factory=lambda: ["invoice", "inv no", "factura", "doc", "ref", "num"]
    )
    debit: list[str] = Field(
        default_factory=lambda: ["debit", "debe", "amount", "valor", "total"]
    )
    credit: list[str] = Field(default_factory=lambda: ["credit", "haber", "abono"])
    date: list[str] = Field(default_factory=lambda: ["date", "fecha", "issue"])
    reason: list[str] = Field(default_factory=lambda: ["reason", "desc", "motivo"])
    entity: list[str] = Field(
        default_factory=lambda: [
            "entity",
            "entithy",
            "entidad",
            "legal",
            "society",
            "sociedad",
            "business unit",
            "bu_",
        ]
    )
    vendor: list[str] = Field(
        default_factory=lambda: [
            "vendor",
            "supplier",
            "payee",
            "proveedor",
            "name",
            "company",
            "partner",
            "third party",
        ]
    )


class ClassificationConfig(BaseModel):
    """Reason-text keywords that classify a row."""

    payment_keywords: list[str] = Field(
        default_factory=lambda: ["payment", "transfer", "πληρωμ"]
    )
    credit_note_keywords: list[str] = Field(default_factory=lambda: ["credit", "cn"])


class CodeCleaningConfig(BaseModel):
    """Invoice reference canonicalization settings."""

    prefixes: list[str] = Field(
        default_factory=lambda: [
            "αρ",
            "τιμ",
            "pf",
            "ab",
            "inv",
            "tim",
            "cn",
            "ar",
            "pa",
            "πφ",
            "πα",
            "apo",
            "ref",
            "doc",
            "num",
            "no",
            "apd",
            "vs",
        ]
    )


class InputConfig(BaseModel):
    """Configuration for reading and normalizing ledger exports."""

    encoding: str = "utf-8"
    delimiter: str = ","
    sheet: Union[int, str] = 0
    placeholder_invoice: str = "UNKNOWN-{index}"
    column_roles: ColumnRolesConfig = Field(default_factory=ColumnRolesConfig)
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    code_cleaning: CodeCleaningConfig = Field(default_factory=CodeCleaningConfig)


class ConsolidationConfig(BaseModel):
    """Netting of invoices and credit notes sharing a normalized code."""

    enabled: bool = True
    min_code_length: int = 2
    zero_balance_tolerance: float = 0.01


class MatchingTier(BaseModel):
    """A matching tier with priority and thresholds."""

    name: str
    strategy: str
    description: str = ""
    priority: int = 99
    enabled: bool = True
    amount_tolerance: Optional[float] = None
    similarity_threshold: Optional[float] = None


class MatchingConfig(BaseModel):
    """Configuration for matching engine."""

    tiers: list[MatchingTier] = Field(
        default_factory=lambda: [MatchingTier(**tier) for tier in DEFAULT_TIERS]
    )


class ExcelOutputConfig(BaseModel):
    """Configuration for Excel output."""

    filename_template: str = "reconciliation_report_{date}_{time}.xlsx"


class SheetConfig(BaseModel):
    """Configuration for a report sheet."""

    enabled: bool = True
    name: str


class SheetsConfig(BaseModel):
    """Configuration for all report sheets."""

    summary: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Summary"))
    perfect: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Perfect Matches"))
    difference: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Difference Matches")
    )
    fuzzy: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Fuzzy Matches"))
    erp_only: SheetConfig = Field(default_factory=lambda: SheetConfig(name="ERP Only"))
    vendor_only: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Vendor Only"))


class OutputConfig(BaseModel):
    """Configuration for output."""

    excel: ExcelOutputConfig = Field(default_factory=ExcelOutputConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    # Rotating log file; console only when unset
    file: Optional[str] = None


class ReconConfig(BaseModel):
    """Main configuration model for reconciliation."""

    input: InputConfig = Field(default_factory=InputConfig)
    consolidation: ConsolidationConfig = Field(default_factory=ConsolidationConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_path: Optional[str] = None


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    return {
        "input": {
            "encoding": "utf-8",
            "delimiter": ",",
            "sheet": 0,
            "placeholder_invoice": "UNKNOWN-{index}",
            "column_roles": ColumnRolesConfig().model_dump(),
            "classification": ClassificationConfig().model_dump(),
            "code_cleaning": CodeCleaningConfig().model_dump(),
        },
        "consolidation": {
            "enabled": True,
            "min_code_length": 2,
            "zero_balance_tolerance": 0.01,
        },
        "matching": {
            "tiers": [dict(tier) for tier in DEFAULT_TIERS],
        },
        "output": {
            "excel": {
                "filename_template": "reconciliation_report_{date}_{time}.xlsx",
            },
            "sheets": {
                "summary": {"enabled": True, "name": "Summary"},
                "perfect": {"enabled": True, "name": "Perfect Matches"},
                "difference": {"enabled": True, "name": "Difference Matches"},
                "fuzzy": {"enabled": True, "name": "Fuzzy Matches"},
                "erp_only": {"enabled": True, "name": "ERP Only"},
                "vendor_only": {"enabled": True, "name": "Vendor Only"},
            },
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file": None,
        },
    }


def load_config(config_path: Optional[Path] = None) -> ReconConfig:
    """
    Load configuration from a YAML file or use defaults.

    Args:
        config_path: Path to YAML configuration file (optional)

    Returns:
        ReconConfig object with loaded or default settings

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation
    """
    config_dict = get_default_config()

    if config_path and config_path.exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigurationError(f"Top level of {config_path} must be a mapping")

        # Deep merge user config into defaults
        config_dict = _deep_merge(config_dict, user_config)
        config_dict["config_file_path"] = str(config_path)
    else:
        logger.info("Using default configuration")

    try:
        config = ReconConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    _validate_tiers(config)
    return config


def _validate_tiers(config: ReconConfig) -> None:
    """Reject tiers that name an unknown strategy."""
    for tier in config.matching.tiers:
        if tier.strategy not in KNOWN_STRATEGIES:
            raise ConfigurationError(
                f"Tier '{tier.name}' uses unknown strategy '{tier.strategy}'; "
                f"expected one of {', '.join(KNOWN_STRATEGIES)}"
            )


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Lists are replaced, not concatenated, so a user keyword list fully
    overrides the built-in one.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def generate_default_config(output_path: Path) -> None:
    """
    Generate a default configuration file.

    Args:
        output_path: Path to write the configuration file
    """
    config_dict = get_default_config()

    yaml_content = """# Vendor statement reconciliation configuration
# Generated configuration file - customize as needed

"""
    yaml_content += yaml.dump(
        config_dict, default_flow_style=False, sort_keys=False, allow_unicode=True
    )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
