"""
Decompiler configuration.

Every type table the decompiler consults lives here and is passed in
explicitly. There are no process-wide registries.

A configuration can be loaded from YAML:

    inline_taxa_threshold: 40
    data_dir: out/data
    wrapper_slots:
      Prior: distr
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError
from .graph import NodeCategory


DEFAULT_PRIMARY_SLOTS = {
    "Prior": "x",
    "YuleModel": "tree",
    "BirthDeathGernhard08Model": "tree",
    "MRCAPrior": "tree",
    "TreeLikelihood": "data",
    "ThreadedTreeLikelihood": "data",
}


@dataclass
class DecompilerConfig:
    """
    Tables and thresholds for one decompilation run.

    Distribution roles:
        primary_slots:
            distribution type -> slot holding the node it samples
        default_primary_slot:
            fallback for distribution types missing from primary_slots
        wrapper_slots:
            wrapper type -> slot holding the inner distribution
            (wrappers are unwrapped, never emitted themselves)
        likelihood_types:
            likelihood type -> slot holding the observed data node
        calibration_types / calibration_slots:
            clade calibrations turned into @calibration annotations

    Composition pattern:
        composition_operator_family, composition_operator_flag,
        composition_distribution, integer_parameter_types

    Data extraction:
        inline thresholds, data_dir, write_data_files and slot names
    """

    # Distribution roles
    primary_slots: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PRIMARY_SLOTS))
    default_primary_slot: Optional[str] = "x"
    wrapper_slots: Dict[str, str] = field(default_factory=lambda: {"Prior": "distr"})
    likelihood_types: Dict[str, str] = field(
        default_factory=lambda: {"TreeLikelihood": "data", "ThreadedTreeLikelihood": "data"}
    )
    calibration_types: List[str] = field(default_factory=lambda: ["MRCAPrior"])
    calibration_slots: Dict[str, str] = field(default_factory=lambda: {
        "tree": "tree",
        "taxonset": "taxonset",
        "distribution": "distr",
        "leaf": "tipsonly",
        "monophyletic": "monophyletic",
    })
    distribution_target_categories: List[str] = field(
        default_factory=lambda: [NodeCategory.PARAMETER.value, NodeCategory.TREE.value]
    )

    # Composition pattern
    composition_operator_family: str = "DeltaExchange"
    composition_operator_flag: str = "integer"
    composition_distribution: str = "RandomComposition"
    integer_parameter_types: List[str] = field(default_factory=lambda: ["IntegerParameter"])

    # Suppression
    machinery_categories: List[str] = field(
        default_factory=lambda: [NodeCategory.OPERATOR.value, NodeCategory.COMPOSITE.value]
    )

    # Parameters
    value_slot: str = "value"
    estimate_slot: str = "estimate"
    state_node_skip_slots: List[str] = field(
        default_factory=lambda: ["value", "dimension", "estimate", "keys"]
    )

    # Data extraction
    sequence_slot: str = "sequences"
    sequence_taxon_slot: str = "taxon"
    sequence_data_slot: str = "value"
    data_type_slot: str = "dataType"
    file_slot: str = "fileName"
    default_data_type: str = "nucleotide"
    inline_taxa_threshold: int = 80
    inline_length_threshold: int = 1000
    write_data_files: bool = True
    data_dir: str = ""
    data_file_extension: str = ".nex"

    def primary_slot(self, type_name: str) -> Optional[str]:
        return self.primary_slots.get(type_name, self.default_primary_slot)

    def is_machinery(self, category: NodeCategory) -> bool:
        return category.value in self.machinery_categories

    def is_distribution_target(self, category: NodeCategory) -> bool:
        return category.value in self.distribution_target_categories


def config_to_dict(config: DecompilerConfig) -> Dict[str, Any]:
    return dataclasses.asdict(config)


def config_from_dict(d: Optional[Dict[str, Any]]) -> DecompilerConfig:
    """
    Build a config from a (partial) dict; missing keys keep their defaults.

    Raises:
        ConfigError: unknown keys, or a non-mapping document
    """
    if d is None:
        return DecompilerConfig()
    if not isinstance(d, dict):
        raise ConfigError(f"Configuration must be a mapping, got {type(d).__name__}")

    known = {f.name for f in dataclasses.fields(DecompilerConfig)}
    unknown = sorted(set(d) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    for category_key in ("machinery_categories", "distribution_target_categories"):
        for value in d.get(category_key, []):
            try:
                NodeCategory(value)
            except ValueError:
                raise ConfigError(f"Unknown node category '{value}' in {category_key}") from None

    return DecompilerConfig(**d)


def config_from_yaml(text: str) -> DecompilerConfig:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML configuration: {exc}") from exc
    return config_from_dict(data)


def load_config(path: str) -> DecompilerConfig:
    with open(path) as fh:
        return config_from_yaml(fh.read())
