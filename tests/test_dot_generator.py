"""
Tests for the Graphviz DOT generator.

Tests verify:
    - Basic graph structure (digraph, nodes, edges)
    - Distribution assignments drawn as ellipses
    - DETAILED mode labels and annotation edges
    - Escaping of identifiers and labels
"""

from mgdc.backends.dot_generator import DotMode, generate_dot, save_dot_file
from mgdc.examples import build_example_phylo_model
from mgdc.expressions import Argument, Identifier, Invocation, Literal
from mgdc.model import Annotated, Annotation, Declaration, DecompiledModel, DistributionAssignment
from mgdc.pipeline import decompile


def _small_model():
    model = DecompiledModel()
    model.add_statement(Declaration("Taxon", "human", Invocation("Taxon")))
    model.add_statement(Declaration("TaxonSet", "ts", Invocation("TaxonSet", [
        Argument("taxon", Identifier("human")),
    ])))
    model.add_statement(Annotated(
        (Annotation("calibration", {"taxonset": Identifier("ts")}),),
        DistributionAssignment("Tree", "tree", Invocation("YuleModel", [
            Argument("birthDiffRate", Literal(1.0)),
        ])),
    ))
    return model


class TestDotBasicStructure:
    """Test basic DOT graph structure."""

    def test_digraph_header_and_footer(self):
        """Output is a single directed graph."""
        dot = generate_dot(_small_model())
        assert dot.startswith("digraph model {")
        assert dot.rstrip().endswith("}")
        assert "rankdir=LR;" in dot

    def test_every_statement_is_a_node(self):
        dot = generate_dot(_small_model())
        for name in ["human", "ts", "tree"]:
            assert f"  {name} [" in dot

    def test_reference_edges(self):
        """Edges run from the declaration to its user."""
        dot = generate_dot(_small_model())
        assert "  human -> ts;" in dot

    def test_distribution_assignment_is_ellipse(self):
        dot = generate_dot(_small_model())
        tree_line = [line for line in dot.splitlines() if line.startswith("  tree [")][0]
        assert "shape=ellipse" in tree_line
        human_line = [line for line in dot.splitlines() if line.startswith("  human [")][0]
        assert "ellipse" not in human_line

    def test_simple_mode_ignores_annotation_references(self):
        dot = generate_dot(_small_model(), DotMode.SIMPLE)
        assert "ts -> tree" not in dot

    def test_empty_model(self):
        dot = generate_dot(DecompiledModel())
        assert "->" not in dot


class TestDotDetailedMode:
    """Test DETAILED mode labels and annotation edges."""

    def test_labels_show_type_and_operator(self):
        dot = generate_dot(_small_model(), DotMode.DETAILED)
        assert 'label="tree\\nTree ~\\n@calibration"' in dot
        assert 'label="human\\nTaxon ="' in dot

    def test_annotation_edge_is_dashed(self):
        dot = generate_dot(_small_model(), DotMode.DETAILED)
        assert '  ts -> tree [style=dashed, label="calibration"];' in dot


class TestDotEscaping:

    def test_non_identifier_names_quoted(self):
        model = DecompiledModel()
        model.add_statement(Declaration("A", "1st", Literal(1)))
        dot = generate_dot(model)
        assert '  "1st" [' in dot

    def test_quotes_in_labels_escaped(self):
        model = DecompiledModel()
        model.add_statement(Declaration('Odd"Type', "a", Literal(1)))
        dot = generate_dot(model, DotMode.DETAILED)
        assert 'Odd\\"Type' in dot


class TestDotExampleModel:

    def test_example_graph(self):
        mcmc, auxiliary = build_example_phylo_model()
        model = decompile(mcmc, auxiliary).model
        dot = generate_dot(model, DotMode.DETAILED)
        assert "  dna -> treeLikelihood;" in dot
        assert "  humanChimp -> Tree_t_dna [style=dashed" in dot
        assert dot.count(" [label=") + dot.count(", label=") >= len(model.statements)

    def test_save_dot_file(self, tmp_path):
        path = tmp_path / "model.dot"
        save_dot_file(_small_model(), str(path))
        assert path.read_text().startswith("digraph model {")
