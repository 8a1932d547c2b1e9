"""Tests for user agent descriptions."""

import pytest
from ua_parser import OS

from sessionmanager.core.modules.login_session.user_agent import describe_os, describe_user_agent, parse_user_agent

FIREFOX_UBUNTU = "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:120.0) Gecko/20100101 Firefox/120.0"
CHROME_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class TestDescribeUserAgent:
    def test_empty_user_agent(self):
        assert describe_user_agent("") == ""

    def test_firefox_on_ubuntu(self):
        assert describe_user_agent(FIREFOX_UBUNTU).startswith("Firefox on Ubuntu")

    def test_chrome_on_mac_includes_os_version(self):
        assert describe_user_agent(CHROME_MAC).startswith("Chrome on Mac OS X 10")

    @pytest.mark.parametrize("raw", ["garbage", "\x00\xff", "Mozilla/5.0 (", " ", "a" * 5000])
    def test_malformed_input_never_raises(self, raw):
        description = describe_user_agent(raw)
        assert isinstance(description, str)
        assert " on " in description


class TestParseUserAgent:
    def test_unknown_agent_falls_back_to_other(self):
        info = parse_user_agent("zzz qqq")
        assert info.browser_family == "Other"
        assert info.os_description == "Other"

    def test_parser_failure_falls_back_to_other(self, monkeypatch):
        def broken_parse(raw):
            raise RuntimeError("boom")

        monkeypatch.setattr("sessionmanager.core.modules.login_session.user_agent.parse", broken_parse)
        info = parse_user_agent(FIREFOX_UBUNTU)
        assert info.browser_family == "Other"
        assert info.os_description == "Other"


class TestDescribeOs:
    def test_missing_os(self):
        assert describe_os(None) == "Other"

    def test_family_without_version(self):
        assert describe_os(OS(family="Ubuntu")) == "Ubuntu"

    def test_version_parts_are_dotted(self):
        assert describe_os(OS(family="Mac OS X", major="10", minor="15", patch="7")) == "Mac OS X 10.15.7"
