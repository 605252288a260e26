"""Tests for loading plugin rules from YAML."""
import logging
import re
from textwrap import dedent

import pytest
from core.exceptions import ConfigError, PatternError
from models.ruleset import VersionStrategy
from rules.rules_loader import load_ruleset, load_ruleset_text


RULES = dedent(r"""
    Gallery:
      acme-gallery:
        Comment:
          pattern: !ruby/regexp /Acme Gallery v([\d.]+)/i
          version: true
        MetaTag:
          xpath: //meta[@name="generator"]/@content
          pattern: Acme Gallery
        Readme:
          path: readme.txt
    Forms:
      plain-form:
        Comment:
          pattern: !regexp /Plain Form/
      bare-form:
        Comment: {}
""")


def test_load_ruleset_structure():
    ruleset = load_ruleset_text(RULES)

    assert list(ruleset.sections) == ["Gallery", "Forms"]
    assert ruleset.plugin_count == 3
    names = [name for _, name, _ in ruleset.plugins()]
    assert names == ["acme-gallery", "plain-form", "bare-form"]

    acme = ruleset.sections["Gallery"]["acme-gallery"]
    assert acme.section == "Gallery"
    assert acme.readme_path == "readme.txt"
    assert set(acme.signals) == {"Comment", "MetaTag"}


def test_regexp_literal_flags_and_plain_string_patterns():
    acme = load_ruleset_text(RULES).sections["Gallery"]["acme-gallery"]

    comment = acme.signal("Comment")
    assert comment.pattern.pattern == r"Acme Gallery v([\d.]+)"
    assert comment.pattern.flags & re.IGNORECASE
    assert comment.has_version_field is True

    meta = acme.signal("MetaTag")
    assert meta.pattern.pattern == "Acme Gallery"
    assert meta.xpath == '//meta[@name="generator"]/@content'
    assert meta.has_version_field is False


def test_version_strategy_resolved_at_load():
    ruleset = load_ruleset_text(RULES)
    acme = ruleset.sections["Gallery"]["acme-gallery"]

    assert acme.signal("Comment").strategy is VersionStrategy.DIRECT_CAPTURE
    assert acme.signal("MetaTag").strategy is VersionStrategy.README_STABLE_TAG
    assert ruleset.sections["Forms"]["plain-form"].signal("Comment").strategy is VersionStrategy.NONE
    assert ruleset.sections["Forms"]["bare-form"].signal("Comment").pattern is None


def test_version_without_pattern_falls_to_readme():
    ruleset = load_ruleset_text(dedent("""
        Misc:
          acme:
            Comment:
              version: true
            Readme:
              path: readme.txt
    """))
    assert ruleset.sections["Misc"]["acme"].signal("Comment").strategy is VersionStrategy.README_STABLE_TAG


def test_unknown_signal_type_is_ignored(caplog):
    with caplog.at_level(logging.WARNING):
        ruleset = load_ruleset_text(dedent("""
            Misc:
              acme:
                Header:
                  pattern: acme
        """))
    assert ruleset.sections["Misc"]["acme"].signals == {}
    assert "Header" in caplog.text


@pytest.mark.parametrize("text", [
    "Misc:\n  acme: !!python/object/apply:os.system ['true']\n",
    "Misc:\n  acme:\n    Comment:\n      pattern: !ruby/object:Foo {}\n",
    "Misc:\n  acme:\n    Comment:\n      pattern: !!python/name:os.system\n",
])
def test_executable_types_are_rejected(text):
    with pytest.raises(ConfigError):
        load_ruleset_text(text)


@pytest.mark.parametrize("text", [
    "Misc: [",
    "- just\n- a list\n",
    "Misc:\n  - acme\n",
    "Misc:\n  acme: plain\n",
    "Misc:\n  acme:\n    Comment: nope\n",
    "Misc:\n  acme:\n    Readme: readme.txt\n",
    "Misc:\n  acme:\n    Comment:\n      pattern: !ruby/regexp /acme/q\n",
])
def test_malformed_rules_are_rejected(text):
    with pytest.raises(ConfigError):
        load_ruleset_text(text)


def test_invalid_pattern_reported_per_rule():
    with pytest.raises(PatternError) as exc_info:
        load_ruleset_text("Misc:\n  acme:\n    Comment:\n      pattern: 'Acme (unclosed'\n")

    err = exc_info.value
    assert err.details["plugin"] == "acme"
    assert err.details["signal_type"] == "Comment"
    assert err.details["field"] == "pattern"


@pytest.mark.parametrize("xpath", [
    "//meta[",
    "//meta[@name=$gen]/@content",
    "foo()",
    "boolean(//x)",
    "count(//meta)",
])
def test_invalid_xpath_reported_per_rule(xpath):
    with pytest.raises(PatternError) as exc_info:
        load_ruleset_text(f"Misc:\n  acme:\n    MetaTag:\n      xpath: '{xpath}'\n")
    assert exc_info.value.details["plugin"] == "acme"
    assert exc_info.value.details["field"] == "xpath"


def test_regexp_literals_anchor_at_line_boundaries():
    ruleset = load_ruleset_text(dedent(r"""
        Misc:
          ruby-tag:
            Comment:
              pattern: !ruby/regexp /^Powered by Acme ([\d.]+)$/
          short-tag:
            Comment:
              pattern: !regexp /^Acme$/i
          plain:
            Comment:
              pattern: ^Acme$
    """))
    misc = ruleset.sections["Misc"]

    assert misc["ruby-tag"].signal("Comment").pattern.flags & re.MULTILINE
    short = misc["short-tag"].signal("Comment").pattern
    assert short.flags & re.MULTILINE and short.flags & re.IGNORECASE
    assert not misc["plain"].signal("Comment").pattern.flags & re.MULTILINE
    assert misc["ruby-tag"].signal("Comment").pattern.search("Acme banner\nPowered by Acme 1.2\n").group(1) == "1.2"


def test_empty_rules_file_gives_empty_ruleset():
    ruleset = load_ruleset_text("")
    assert ruleset.plugin_count == 0
    assert list(ruleset.plugins()) == []


def test_load_ruleset_from_file(tmp_path):
    path = tmp_path / "plugins.yml"
    path.write_text(RULES, encoding="utf-8")
    assert load_ruleset(str(path)).plugin_count == 3


def test_load_ruleset_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_ruleset(str(tmp_path / "missing.yml"))


def test_bundled_rules_file_loads():
    import os
    path = os.path.join(os.path.dirname(__file__), "..", "rules", "wordpress_plugins.yml")
    ruleset = load_ruleset(path)
    assert ruleset.plugin_count > 0
    woo = ruleset.sections["E-commerce"]["woocommerce"]
    assert woo.signal("ScriptTag").strategy is VersionStrategy.DIRECT_CAPTURE
