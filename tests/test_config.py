import pytest

from hamlc.config import CompilerOptions, OutputFormat, ProjectConfig, WritePair, load_config, parse_config
from hamlc.errors import ConfigError


class TestCompilerOptions:

    def test_defaults(self):
        options = CompilerOptions()
        assert options.escape_html is True
        assert options.format is OutputFormat.HTML5
        assert options.custom_html_escape is None
        assert options.namespace == 'HAML'

    def test_format_string_is_normalized(self):
        assert CompilerOptions(format='xhtml').format is OutputFormat.XHTML

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            CompilerOptions(format='html3')

    def test_from_mapping(self):
        options = CompilerOptions.from_mapping({
            'escape_html': False,
            'format': 'html4',
            'custom_html_escape': 'App.escape',
            'namespace': 'App.templates',
        })
        assert options == CompilerOptions(escape_html=False, format=OutputFormat.HTML4,
                                          custom_html_escape='App.escape', namespace='App.templates')

    def test_from_empty_mapping(self):
        assert CompilerOptions.from_mapping(None) == CompilerOptions()
        assert CompilerOptions.from_mapping({}) == CompilerOptions()

    @pytest.mark.parametrize('data, message', [
        ({'escape': True}, 'Unknown compiler option'),
        ({'escape_html': 'yes'}, 'escape_html'),
        ({'format': 'html3'}, 'format'),
        ({'custom_html_escape': 3}, 'custom_html_escape'),
        ({'namespace': 'my-app'}, 'namespace'),
        ({'namespace': 'a..b'}, 'namespace'),
        (['format'], 'mapping'),
    ])
    def test_invalid_options(self, data, message):
        with pytest.raises(ConfigError, match=message):
            CompilerOptions.from_mapping(data)


class TestProjectConfig:

    def test_load_config(self, project):
        cfg = load_config(project / "hamlc.yml")
        assert cfg.root == project
        assert cfg.base == project / "templates"
        assert cfg.options.format is OutputFormat.HTML5
        assert cfg.write == [
            WritePair(src=project / "templates" / "index.haml", dst=project / "build" / "index.py"),
            WritePair(src=project / "templates" / "users" / "show-item.haml",
                      dst=project / "build" / "users" / "show_item.py"),
        ]

    def test_watch_paths(self, project):
        cfg = load_config(project / "hamlc.yml")
        assert cfg.watch_paths() == {
            project / "templates" / "index.haml",
            project / "templates" / "users" / "show-item.haml",
        }

    def test_empty_config(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        cfg = load_config(path)
        assert cfg.write == []
        assert cfg.base is None
        assert cfg.options == CompilerOptions()

    def test_single_watch_pattern(self):
        assert parse_config({'watch': '*.haml'}).watch == ['*.haml']

    def test_write_entry_needs_src_and_dst(self):
        with pytest.raises(ConfigError, match="'src' and 'dst'"):
            parse_config({'write': [{'src': 'a.haml'}]})

    def test_config_must_be_a_mapping(self):
        with pytest.raises(ConfigError):
            parse_config(['a', 'b'])

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_config(tmp_path / "missing.yml")

    def test_defaults(self):
        cfg = ProjectConfig()
        assert cfg.watch_paths() == set()
