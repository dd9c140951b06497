"""
Tests for the text writer backend.

Tests cover:
    - Literal rendering (quoting, escaping, booleans)
    - Statement forms (=, ~) and annotation lines
    - Import header
    - The full example model
"""

import pytest
from mgdc.backends.text_writer import (
    render_expression,
    render_model,
    render_statement,
    save_model_file,
)
from mgdc.examples import build_example_phylo_model
from mgdc.expressions import (
    Argument,
    ArrayLiteral,
    Identifier,
    InlineSequenceData,
    Invocation,
    Literal,
    LoadTabularData,
    MapLiteral,
)
from mgdc.model import Annotated, Annotation, Declaration, DecompiledModel, DistributionAssignment
from mgdc.pipeline import decompile


class TestExpressions:

    def test_literals(self):
        assert render_expression(Literal(3)) == "3"
        assert render_expression(Literal(1.0)) == "1.0"
        assert render_expression(Literal(True)) == "true"
        assert render_expression(Literal(False)) == "false"
        assert render_expression(Literal("ACGT")) == '"ACGT"'

    def test_non_finite_float_rejected(self):
        with pytest.raises(ValueError):
            render_expression(Literal(float("inf")))
        with pytest.raises(ValueError):
            render_expression(Literal(float("nan")))

    def test_string_escaping(self):
        assert render_expression(Literal('say "hi"\\\n')) == '"say \\"hi\\"\\\\\\n"'

    def test_invocation(self):
        expr = Invocation("HKY", [
            Argument("kappa", Identifier("kappa")),
            Argument("frequencies", Identifier("freqs")),
        ])
        assert render_expression(expr) == "HKY(kappa=kappa, frequencies=freqs)"

    def test_empty_invocation(self):
        assert render_expression(Invocation("Taxon")) == "Taxon()"

    def test_array(self):
        assert render_expression(ArrayLiteral([Literal(1), Identifier("x")])) == "[1, x]"

    def test_map_keys_quoted_when_not_identifiers(self):
        expr = MapLiteral({"human": Literal("AC"), "Homo sapiens": Literal("AG")})
        assert render_expression(expr) == '{human: "AC", "Homo sapiens": "AG"}'

    def test_builtins(self):
        assert render_expression(LoadTabularData([Argument("file", Literal("dna.nex"))])) == \
            'loadTabularData(file="dna.nex")'
        assert render_expression(InlineSequenceData([Argument("sequences", MapLiteral({}))])) == \
            "inlineSequenceData(sequences={})"


class TestStatements:

    def test_declaration(self):
        st = Declaration("HKY", "hky", Invocation("HKY"))
        assert render_statement(st) == "HKY hky = HKY();"

    def test_distribution_assignment(self):
        st = DistributionAssignment("RealParameter", "kappa", Identifier("d"))
        assert render_statement(st) == "RealParameter kappa ~ d;"

    def test_annotation_lines(self):
        st = Annotated(
            (Annotation("data"), Annotation("observed", {"data": Identifier("dna")})),
            Declaration("Alignment", "dna", Identifier("x")),
        )
        assert render_statement(st) == "@data\n@observed(data=dna)\nAlignment dna = x;"


class TestModel:

    def test_imports_then_statements(self):
        model = DecompiledModel()
        model.add_import("beast.base.evolution.tree")
        model.add_statement(Declaration("Taxon", "human", Invocation("Taxon")))
        assert render_model(model) == "import beast.base.evolution.tree.*;\n\nTaxon human = Taxon();\n"

    def test_no_imports(self):
        model = DecompiledModel()
        model.add_statement(Declaration("A", "a", Literal(1)))
        assert render_model(model) == "A a = 1;\n"

    def test_example_model(self):
        mcmc, auxiliary = build_example_phylo_model()
        text = render_model(decompile(mcmc, auxiliary).model)
        lines = text.splitlines()

        assert "import beast.base.evolution.speciation.*;" in lines
        assert "RealParameter birthRate_t_dna ~ LogNormalDistributionModel(M=1.0, S=1.25);" in lines
        assert "RealParameter kappa ~ Exponential(mean=1.0, lower=0.0);" in lines
        assert "IntegerParameter bGroupSizes ~ RandomComposition(n=10, k=3);" in lines
        assert "TreeLikelihood treeLikelihood = TreeLikelihood(data=dna, tree=Tree_t_dna, siteModel=siteModel);" \
            in lines

        tree_line = lines.index("Tree Tree_t_dna ~ YuleModel(birthDiffRate=birthRate_t_dna, taxonset=taxa);")
        assert lines[tree_line - 1] == "@calibration(taxonset=humanChimp, distribution=uniform, monophyletic=true)"

        dna_line = [i for i, line in enumerate(lines) if line.startswith("Alignment dna = ")][0]
        assert lines[dna_line - 2:dna_line] == ["@data", "@observed(data=dna)"]
        assert 'human: "ACGTACGTAC"' in lines[dna_line]

    def test_save_model_file(self, tmp_path):
        model = DecompiledModel()
        model.add_statement(Declaration("A", "a", Literal(1)))
        path = tmp_path / "model.b2l"
        save_model_file(model, str(path))
        assert path.read_text() == "A a = 1;\n"
