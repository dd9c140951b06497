"""
Example model graph for proof-of-concept decompilation.

Builds a small phylogenetic inference model (three primates, HKY
substitution model, Yule tree prior, one clade calibration) the way an
inference framework holds it in memory: shared references, wrapper
priors, unnamed helper distributions, operators and container objects.

Decompiling it exercises every statement kind:
    - @data inline alignment, later also @observed
    - '~' assignments from unwrapped priors, with secondary inputs carried
    - a synthesized RandomComposition for a DeltaExchange-driven vector
    - @calibration on the tree from an MRCAPrior
"""
from typing import List, Tuple

from .graph import Node, NodeCategory

PARAMETER_PKG = "beast.base.inference.parameter"
DISTRIBUTION_PKG = "beast.base.inference.distribution"
INFERENCE_PKG = "beast.base.inference"
OPERATOR_PKG = "beast.base.inference.operator"
ALIGNMENT_PKG = "beast.base.evolution.alignment"
TREE_PKG = "beast.base.evolution.tree"
SPECIATION_PKG = "beast.base.evolution.speciation"
SUBSTITUTION_PKG = "beast.base.evolution.substitutionmodel"
SITE_MODEL_PKG = "beast.base.evolution.sitemodel"
LIKELIHOOD_PKG = "beast.base.evolution.likelihood"

EXAMPLE_SEQUENCES = [
    ("human", "ACGTACGTAC"),
    ("chimp", "ACGTACGTAA"),
    ("gorilla", "ACGAACGTAC"),
]


def _parameter(name: str, values, type_name: str = "RealParameter", **slots) -> Node:
    return Node(type_name, NodeCategory.PARAMETER, name,
                dict({"value": list(values)}, **slots), PARAMETER_PKG)


def build_example_alignment(sequences=None, name: str = "dna") -> Node:
    """An Alignment data node with one Sequence child per taxon."""
    sequences = EXAMPLE_SEQUENCES if sequences is None else sequences
    children = [
        Node("Sequence", NodeCategory.OTHER, f"seq_{taxon}",
             {"taxon": taxon, "value": data}, ALIGNMENT_PKG)
        for taxon, data in sequences
    ]
    return Node("Alignment", NodeCategory.DATA_SOURCE, name,
                {"sequences": children, "dataType": "nucleotide"}, ALIGNMENT_PKG)


def build_example_phylo_model() -> Tuple[Node, List[Node]]:
    """
    Returns:
        (mcmc root, auxiliary roots)

    The auxiliary trace logger is not reachable from the MCMC node.
    """
    dna = build_example_alignment()

    # Taxa and tree
    taxa = [Node("Taxon", NodeCategory.OTHER, taxon, {}, ALIGNMENT_PKG) for taxon, _ in EXAMPLE_SEQUENCES]
    human, chimp, _ = taxa
    all_taxa = Node("TaxonSet", NodeCategory.OTHER, "taxa", {"taxon": list(taxa)}, ALIGNMENT_PKG)
    human_chimp = Node("TaxonSet", NodeCategory.OTHER, "humanChimp", {"taxon": [human, chimp]}, ALIGNMENT_PKG)
    tree = Node("Tree", NodeCategory.TREE, "Tree.t:dna", {"taxonset": all_taxa}, TREE_PKG)

    # Yule tree prior; the birth rate has a wrapped, unnamed LogNormal prior
    birth_rate = _parameter("birthRate.t:dna", [1.0], estimate=True)
    yule = Node("YuleModel", NodeCategory.DISTRIBUTION, "YuleModel.t:dna",
                {"tree": tree, "birthDiffRate": birth_rate}, SPECIATION_PKG)
    log_normal = Node("LogNormalDistributionModel", NodeCategory.DISTRIBUTION, None, {
        "M": _parameter("M", [1.0], estimate=False),
        "S": _parameter("S", [1.25], estimate=False),
    }, DISTRIBUTION_PKG)
    birth_rate_prior = Node("Prior", NodeCategory.DISTRIBUTION, "BirthRatePrior.t:dna",
                            {"x": birth_rate, "distr": log_normal}, DISTRIBUTION_PKG)

    # Substitution model
    kappa = _parameter("kappa", [2.0], lower=0.0, estimate=True)
    exponential = Node("Exponential", NodeCategory.DISTRIBUTION, None,
                       {"mean": _parameter("mean", [1.0], estimate=False)}, DISTRIBUTION_PKG)
    kappa_prior = Node("Prior", NodeCategory.DISTRIBUTION, "KappaPrior",
                       {"x": kappa, "distr": exponential}, DISTRIBUTION_PKG)
    freq_parameter = _parameter("freqParameter", [0.25] * 4, dimension=4, lower=0.0, upper=1.0, estimate=True)
    freqs = Node("Frequencies", NodeCategory.OTHER, "empiricalFreqs",
                 {"frequencies": freq_parameter}, SUBSTITUTION_PKG)
    hky = Node("HKY", NodeCategory.OTHER, "hky", {"kappa": kappa, "frequencies": freqs}, SUBSTITUTION_PKG)
    site_model = Node("SiteModel", NodeCategory.OTHER, "siteModel",
                      {"substModel": hky, "gammaCategoryCount": 1}, SITE_MODEL_PKG)

    # Group sizes moved around by an integer DeltaExchange operator
    group_sizes = _parameter("bGroupSizes", [2, 3, 5], type_name="IntegerParameter", estimate=True)

    # Likelihood and calibration
    tree_likelihood = Node("TreeLikelihood", NodeCategory.DISTRIBUTION, "treeLikelihood",
                           {"data": dna, "tree": tree, "siteModel": site_model}, LIKELIHOOD_PKG)
    uniform = Node("Uniform", NodeCategory.DISTRIBUTION, None, {"lower": 5.0, "upper": 7.0}, DISTRIBUTION_PKG)
    calibration = Node("MRCAPrior", NodeCategory.DISTRIBUTION, "humanChimp.prior", {
        "tree": tree,
        "taxonset": human_chimp,
        "distr": uniform,
        "monophyletic": True,
    }, TREE_PKG)

    # Machinery
    operators = [
        Node("DeltaExchangeOperator", NodeCategory.OPERATOR, "groupSizesDelta",
             {"intparameter": group_sizes, "integer": True, "weight": 6.0}, OPERATOR_PKG),
        Node("ScaleOperator", NodeCategory.OPERATOR, "kappaScaler",
             {"parameter": kappa, "scaleFactor": 0.5, "weight": 1.0}, OPERATOR_PKG),
        Node("ScaleOperator", NodeCategory.OPERATOR, "birthRateScaler",
             {"parameter": birth_rate, "scaleFactor": 0.75, "weight": 3.0}, OPERATOR_PKG),
        Node("ScaleOperator", NodeCategory.OPERATOR, "treeScaler",
             {"tree": tree, "scaleFactor": 0.5, "weight": 3.0}, OPERATOR_PKG),
    ]
    prior = Node("CompoundDistribution", NodeCategory.COMPOSITE, "prior",
                 {"distribution": [yule, birth_rate_prior, kappa_prior, calibration]}, DISTRIBUTION_PKG)
    likelihood = Node("CompoundDistribution", NodeCategory.COMPOSITE, "likelihood",
                      {"distribution": [tree_likelihood]}, DISTRIBUTION_PKG)
    posterior = Node("CompoundDistribution", NodeCategory.COMPOSITE, "posterior",
                     {"distribution": [prior, likelihood]}, DISTRIBUTION_PKG)
    state = Node("State", NodeCategory.COMPOSITE, "state",
                 {"stateNode": [tree, birth_rate, kappa, freq_parameter, group_sizes]}, INFERENCE_PKG)
    mcmc = Node("MCMC", NodeCategory.OTHER, "mcmc", {
        "chainLength": 10000000,
        "state": state,
        "distribution": posterior,
        "operator": operators,
    }, INFERENCE_PKG)

    trace_log = Node("Logger", NodeCategory.OTHER, "tracelog", {
        "fileName": "dna.log",
        "logEvery": 1000,
        "log": [posterior, kappa, birth_rate],
    }, INFERENCE_PKG)

    return mcmc, [trace_log]
