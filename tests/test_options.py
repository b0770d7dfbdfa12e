"""
Tests for the command-line surface.

We need to:
1. Register the four flags in a "Feature models" group
2. Keep sources in command-line order across different flags
3. Read additional sources from a YAML config
4. Report configuration errors with the offending argument and exit status 2
"""

import argparse
import json

import pytest
import yaml
from featuremodel.options import (
    SOURCES_DEST,
    add_feature_model_arguments,
    build_parser,
    configure_feature_models,
    load_config_sources,
    main,
)
from featuremodel.loader import SourceDescriptor, SourceKind
from featuremodel.errors import ConfigurationError, DuplicateModelError, MissingFileError
from featuremodel.model import UNIVERSAL_MODEL
from featuremodel.serialization import model_from_dict

EXAMPLE_FACTORY = "featuremodel.examples.ExampleNetworkStackFactory"


@pytest.fixture
def files(tmp_path):
    (tmp_path / "a.fexpr").write_text("A => B\n")
    (tmp_path / "b.fexpr").write_text("A\n")
    (tmp_path / "fm.dimacs").write_text("c 1 X\np cnf 1 1\n1 0\n")
    (tmp_path / "ts.dimacs").write_text("c 1 T\np cnf 1 1\n-1 0\n")
    return tmp_path


@pytest.fixture
def large_fexpr(tmp_path):
    path = tmp_path / "large.fexpr"
    path.write_text("".join(f"F{i} => F{i + 1}\n" for i in range(3000)))
    return path


class TestArgumentRegistration:

    def test_group_and_flags(self):
        parser = argparse.ArgumentParser()
        group = add_feature_model_arguments(parser)
        assert group.title == "Feature models"
        flags = {opt for action in group._group_actions for opt in action.option_strings}
        assert flags == {
            "--featureModelDimacs",
            "--featureModelFExpr",
            "--featureModelClass",
            "--typeSystemFeatureModelDimacs",
        }

    def test_default_is_empty(self):
        parser = argparse.ArgumentParser()
        add_feature_model_arguments(parser)
        assert getattr(parser.parse_args([]), SOURCES_DEST) == []

    def test_order_preserved_across_flags(self):
        parser = argparse.ArgumentParser()
        add_feature_model_arguments(parser)
        args = parser.parse_args([
            "--featureModelFExpr", "one",
            "--typeSystemFeatureModelDimacs", "ts",
            "--featureModelClass", "pkg.Cls",
            "--featureModelFExpr", "two",
            "--featureModelDimacs", "dm",
        ])
        assert getattr(args, SOURCES_DEST) == [
            SourceDescriptor(SourceKind.FEXPR, "one"),
            SourceDescriptor(SourceKind.TYPE_SYSTEM_DIMACS, "ts"),
            SourceDescriptor(SourceKind.FACTORY_CLASS, "pkg.Cls"),
            SourceDescriptor(SourceKind.FEXPR, "two"),
            SourceDescriptor(SourceKind.DIMACS, "dm"),
        ]

    def test_argument_required(self):
        parser = argparse.ArgumentParser()
        add_feature_model_arguments(parser)
        with pytest.raises(SystemExit):
            parser.parse_args(["--featureModelDimacs"])


class TestConfigureFeatureModels:

    def test_no_flags(self):
        options = configure_feature_models([])
        assert options.feature_model is UNIVERSAL_MODEL
        assert options.type_system_feature_model is UNIVERSAL_MODEL
        assert options.frozen

    def test_unrelated_arguments_ignored(self, files):
        options = configure_feature_models(
            ["--lexOutput", "x", "--featureModelFExpr", str(files / "a.fexpr"), "input.c"]
        )
        assert options.feature_model.features == {"A", "B"}

    def test_expressions_conjoined(self, files):
        options = configure_feature_models([
            "--featureModelFExpr", str(files / "a.fexpr"),
            "--featureModelFExpr", str(files / "b.fexpr"),
        ])
        assert len(options.feature_model.constraints) == 2

    def test_duplicate_dimacs(self, files):
        with pytest.raises(DuplicateModelError):
            configure_feature_models([
                "--featureModelDimacs", str(files / "fm.dimacs"),
                "--featureModelClass", EXAMPLE_FACTORY,
            ])

    def test_missing_file(self, files):
        path = str(files / "missing.dimacs")
        with pytest.raises(MissingFileError, match="missing.dimacs"):
            configure_feature_models(["--typeSystemFeatureModelDimacs", path])

    def test_type_system_override_flag(self, files):
        argv = [
            "--typeSystemFeatureModelDimacs", str(files / "ts.dimacs"),
            "--typeSystemFeatureModelDimacs", str(files / "fm.dimacs"),
        ]
        with pytest.raises(DuplicateModelError):
            configure_feature_models(argv)
        options = configure_feature_models(argv, guard_type_system=False)
        assert options.type_system_feature_model.features == {"X"}

    def test_thousands_of_expression_lines(self, large_fexpr):
        options = configure_feature_models(["--featureModelFExpr", str(large_fexpr)])
        assert len(options.feature_model.constraints) == 3000
        assert len(options.feature_model.features) == 3001

    @pytest.mark.parametrize("flag", ["--featureModelFExpr", "--featureModelDimacs"])
    def test_undecodable_file(self, tmp_path, flag):
        path = tmp_path / "latin1.model"
        path.write_bytes(b"A && \xff\xfe\n")
        with pytest.raises(ConfigurationError, match="cannot read file") as excinfo:
            configure_feature_models([flag, str(path)])
        assert str(path) in str(excinfo.value)


class TestConfigFile:

    def test_sources_resolved_relative_to_config(self, files):
        config = files / "fm.yaml"
        config.write_text(yaml.safe_dump({"sources": [
            {"kind": "fexpr", "path": "a.fexpr"},
            {"kind": "class", "class": EXAMPLE_FACTORY},
            {"kind": "type_system_dimacs", "path": "ts.dimacs"},
        ]}))
        assert load_config_sources(str(config)) == [
            SourceDescriptor(SourceKind.FEXPR, str(files / "a.fexpr")),
            SourceDescriptor(SourceKind.FACTORY_CLASS, EXAMPLE_FACTORY),
            SourceDescriptor(SourceKind.TYPE_SYSTEM_DIMACS, str(files / "ts.dimacs")),
        ]

    def test_empty_config(self, files):
        config = files / "empty.yaml"
        config.write_text("")
        assert load_config_sources(str(config)) == []

    def test_missing_config(self, files):
        with pytest.raises(MissingFileError):
            load_config_sources(str(files / "nope.yaml"))

    @pytest.mark.parametrize("content,message", [
        ("sources: [", "invalid YAML"),
        ("- just a list\n", "expected a mapping"),
        ("sources:\n  - fexpr\n", "is not a mapping"),
        ("sources:\n  - kind: sat\n    path: x\n", "unknown kind 'sat'"),
        ("sources:\n  - kind: dimacs\n", "missing 'path'"),
        ("sources:\n  - kind: class\n    path: x\n", "missing 'class'"),
    ])
    def test_invalid_config(self, files, content, message):
        config = files / "bad.yaml"
        config.write_text(content)
        with pytest.raises(ConfigurationError, match=message):
            load_config_sources(str(config))

    def test_undecodable_config(self, files):
        config = files / "latin1.yaml"
        config.write_bytes(b"sources: [\xff\xfe]\n")
        with pytest.raises(ConfigurationError, match="cannot read file"):
            load_config_sources(str(config))


class TestMain:

    def test_report_without_sources(self, capsys):
        assert main([]) == 0
        out = capsys.readouterr().out
        assert "Feature model:" in out
        assert "Type-system feature model (falls back to feature model):" in out
        assert "Universal:    YES" in out

    def test_report_with_sources(self, files, capsys):
        assert main([
            "--featureModelClass", EXAMPLE_FACTORY,
            "--typeSystemFeatureModelDimacs", str(files / "ts.dimacs"),
        ]) == 0
        out = capsys.readouterr().out
        assert "Solutions:    7" in out
        assert "Type-system feature model:" in out
        assert str(files / "ts.dimacs") in out

    def test_export_json(self, files, capsys):
        assert main(["--featureModelFExpr", str(files / "a.fexpr"), "--export", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        general = model_from_dict(data["feature_model"])
        assert general.features == {"A", "B"}
        assert data["type_system_feature_model"] == data["feature_model"]

    def test_export_yaml_with_config(self, files, capsys):
        config = files / "fm.yaml"
        config.write_text("sources:\n  - kind: fexpr\n    path: b.fexpr\n")
        assert main(["--config", str(config), "--featureModelFExpr", str(files / "a.fexpr"), "--export", "yaml"]) == 0
        data = yaml.safe_load(capsys.readouterr().out)
        general = model_from_dict(data["feature_model"])
        assert len(general.constraints) == 2

    def test_configuration_error_exit_status(self, files, capsys):
        path = str(files / "missing.fexpr")
        with pytest.raises(SystemExit) as excinfo:
            main(["--featureModelFExpr", path])
        assert excinfo.value.code == 2
        err = capsys.readouterr().err
        assert "featuremodel: error:" in err
        assert path in err

    def test_factory_error_names_class(self, capsys):
        with pytest.raises(SystemExit):
            main(["--featureModelClass", "no.such.Factory"])
        assert "no.such.Factory" in capsys.readouterr().err

    def test_large_model_report(self, large_fexpr, capsys):
        assert main(["--featureModelFExpr", str(large_fexpr)]) == 0
        out = capsys.readouterr().out
        assert "Constraints:  3000" in out
        assert "too large to enumerate" in out

    def test_large_model_export(self, large_fexpr, capsys):
        assert main(["--featureModelFExpr", str(large_fexpr), "--export", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert len(data["feature_model"]["constraints"]) == 3000

    @pytest.mark.parametrize("flag", ["--featureModelFExpr", "--featureModelDimacs"])
    def test_undecodable_file_exit_status(self, tmp_path, capsys, flag):
        path = tmp_path / "latin1.model"
        path.write_bytes(b"A && \xff\xfe\n")
        with pytest.raises(SystemExit) as excinfo:
            main([flag, str(path)])
        assert excinfo.value.code == 2
        err = capsys.readouterr().err
        assert "featuremodel: error:" in err
        assert str(path) in err

    def test_help_lists_group(self):
        assert "Feature models" in build_parser().format_help()
