"""Loads plugin rules from a YAML file into a Ruleset.

Only plain YAML data is accepted, plus one extension: a regular expression
literal tagged ``!ruby/regexp`` (the form existing rule files use) or
``!regexp``, e.g.::

    Gallery:
      acme-gallery:
        Comment:
          pattern: !ruby/regexp /Acme Gallery v([\\d.]+)/i
          version: true
        Readme:
          path: readme.txt
"""
import logging
import re
from typing import Any, Dict, NamedTuple, Optional

import yaml
from lxml import etree

import signals  # noqa: F401  (registers the built-in signal types)
from core.document import validate_xpath
from core.exceptions import ConfigError, PatternError
from core.signal_registry import SignalRegistry
from models.ruleset import PluginRule, Ruleset, SignalRule, VersionStrategy, resolve_strategy

logger = logging.getLogger(__name__)

README_KEY = "Readme"
REGEXP_TAGS = ("!ruby/regexp", "!regexp")
REGEXP_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.DOTALL,  # Ruby's /m lets '.' match newlines
    "x": re.VERBOSE,
}


class RegexLiteral(NamedTuple):
    source: str
    flags: int


class RulesLoader(yaml.SafeLoader):
    """SafeLoader that additionally understands regex literals."""


def _construct_regexp(loader: RulesLoader, node: yaml.Node) -> RegexLiteral:
    value = loader.construct_scalar(node)
    # In Ruby, ^ and $ always anchor at line boundaries
    if not (value.startswith("/") and value.rfind("/") > 0):
        return RegexLiteral(value, re.MULTILINE)

    end = value.rfind("/")
    flags = re.MULTILINE
    for char in value[end + 1:]:
        if char not in REGEXP_FLAGS:
            raise yaml.constructor.ConstructorError(
                None, None, f"unsupported regexp flag '{char}' in {value}", node.start_mark
            )
        flags |= REGEXP_FLAGS[char]
    return RegexLiteral(value[1:end], flags)


for _tag in REGEXP_TAGS:
    RulesLoader.add_constructor(_tag, _construct_regexp)


def load_ruleset(path: str) -> Ruleset:
    """
    Loads plugin rules from a YAML file.

    Raises:
        ConfigError: the file cannot be read, is not valid YAML, uses a
            disallowed tag, or does not have the section/plugin/signal shape
        PatternError: a rule's pattern does not compile, or its xpath fails to
            evaluate or does not select nodes
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise ConfigError(f"Cannot read rules file {path}: {e}", details={"path": path})
    return load_ruleset_text(text, source=path)


def load_ruleset_text(text: str, source: str = "<string>") -> Ruleset:
    try:
        data = yaml.load(text, Loader=RulesLoader)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid rules file {source}: {e}", details={"path": source})

    if data is None:
        logger.warning(f"Rules file {source} is empty")
        return Ruleset()
    if not isinstance(data, dict):
        raise ConfigError(f"Rules file {source} must be a mapping of sections", details={"path": source})

    sections: Dict[str, Dict[str, PluginRule]] = {}
    for section, entries in data.items():
        section = str(section)
        if entries is None:
            entries = {}
        if not isinstance(entries, dict):
            raise ConfigError(f"Section '{section}' must be a mapping of plugins", details={"section": section})

        sections[section] = {
            str(name): _build_plugin(section, str(name), details)
            for name, details in entries.items()
        }

    ruleset = Ruleset(sections=sections)
    logger.info(f"Loaded {ruleset.plugin_count} plugin rules in {len(sections)} sections from {source}")
    return ruleset


def _build_plugin(section: str, name: str, details: Any) -> PluginRule:
    if details is None:
        details = {}
    if not isinstance(details, dict):
        raise ConfigError(f"Plugin '{section}/{name}' must be a mapping", details={"section": section, "plugin": name})

    readme_path = _readme_path(section, name, details.get(README_KEY))

    signal_rules: Dict[str, SignalRule] = {}
    for signal_type, block in details.items():
        signal_type = str(signal_type)
        if signal_type == README_KEY:
            continue
        if not SignalRegistry.is_registered(signal_type):
            logger.warning(f"Ignoring unknown signal type '{signal_type}' for {section}/{name}")
            continue
        signal_rules[signal_type] = _build_signal(section, name, signal_type, block, readme_path)

    return PluginRule(name=name, section=section, signals=signal_rules, readme_path=readme_path)


def _readme_path(section: str, name: str, readme: Any) -> Optional[str]:
    if readme is None:
        return None
    if not isinstance(readme, dict):
        raise ConfigError(f"'{README_KEY}' of {section}/{name} must be a mapping", details={"plugin": name})

    path = readme.get("path")
    if path is not None and not isinstance(path, str):
        raise ConfigError(f"'{README_KEY}.path' of {section}/{name} must be a string", details={"plugin": name})
    return path or None


def _build_signal(section: str, plugin: str, signal_type: str, block: Any, readme_path: Optional[str]) -> SignalRule:
    if not isinstance(block, dict):
        raise ConfigError(
            f"'{signal_type}' of {section}/{plugin} must be a mapping",
            details={"section": section, "plugin": plugin, "signal_type": signal_type},
        )

    pattern = _compile_pattern(section, plugin, signal_type, block.get("pattern"))

    xpath = block.get("xpath")
    if xpath is not None:
        if not isinstance(xpath, str):
            raise PatternError(section, plugin, signal_type, "xpath", "must be a string")
        try:
            validate_xpath(xpath)
        except (etree.XPathError, ValueError) as e:
            raise PatternError(section, plugin, signal_type, "xpath", str(e))

    has_version_field = "version" in block
    strategy = resolve_strategy(pattern, has_version_field, readme_path)
    if has_version_field and pattern is None:
        logger.warning(f"{section}/{plugin}/{signal_type} declares a version but has no pattern to capture it")
    elif strategy is VersionStrategy.DIRECT_CAPTURE and pattern.groups < 1:
        logger.warning(f"{section}/{plugin}/{signal_type} pattern has no capturing group; version will be unknown")

    return SignalRule(
        signal_type=signal_type,
        pattern=pattern,
        xpath=xpath,
        has_version_field=has_version_field,
        strategy=strategy,
    )


def _compile_pattern(section: str, plugin: str, signal_type: str, value: Any) -> Optional[re.Pattern]:
    if value is None:
        return None
    if isinstance(value, RegexLiteral):
        source, flags = value.source, value.flags
    elif isinstance(value, str):
        source, flags = value, 0
    else:
        raise PatternError(section, plugin, signal_type, "pattern", f"expected a regex or string, got {type(value).__name__}")

    try:
        return re.compile(source, flags)
    except re.error as e:
        raise PatternError(section, plugin, signal_type, "pattern", str(e))
