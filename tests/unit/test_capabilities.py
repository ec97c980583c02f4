"""Unit tests for the capability registry."""

import logging

import pytest

from agent_kernel.security import (
    ROLE_PERMISSIONS,
    TOOL_REQUIREMENTS,
    AgentRole,
    Permission,
    ToolName,
    is_authorized,
    permissions_for,
    required_permissions,
)


def test_every_role_has_a_permission_entry():
    """Test that the role table covers every role."""
    assert set(ROLE_PERMISSIONS) == set(AgentRole)


def test_every_tool_has_requirements():
    """Test that the tool table covers every tool."""
    assert set(TOOL_REQUIREMENTS) == set(ToolName)


def test_permissions_for_unknown_role_is_empty():
    assert permissions_for("JANITOR") == frozenset()


def test_permissions_for_accepts_string_values():
    assert permissions_for("CODING") == ROLE_PERMISSIONS[AgentRole.CODING]


@pytest.mark.parametrize(
    "role,tool,expected",
    [
        (AgentRole.CODING, ToolName.EXECUTE_PYTHON, True),
        (AgentRole.CODING, ToolName.DELEGATE_TASK, False),
        (AgentRole.CODING, ToolName.FETCH_URL, False),
        (AgentRole.AUTOMATION, ToolName.FETCH_URL, True),
        (AgentRole.PLANNER, ToolName.DELEGATE_TASK, True),
        (AgentRole.VOICE, ToolName.SAVE_MEMORY, False),
        (AgentRole.VOICE, ToolName.SEARCH_MEMORY, True),
        (AgentRole.MONITORING, ToolName.SYSTEM_STATUS, True),
        (AgentRole.VISION, ToolName.ANALYZE_CODE, False),
    ],
)
def test_is_authorized_follows_permission_tables(role, tool, expected):
    """Test authorization against the static tables."""
    assert is_authorized(role, tool) is expected


def test_is_authorized_matches_subset_rule_for_all_pairs():
    """Test that authorization is exactly 'required is a subset of granted'."""
    for role in AgentRole:
        for tool in ToolName:
            expected = TOOL_REQUIREMENTS[tool] <= ROLE_PERMISSIONS[role]
            assert is_authorized(role, tool) is expected


def test_unknown_tool_fails_closed():
    """Test that unregistered tools are denied even to the broadest role."""
    assert required_permissions("format_disk") is None
    assert is_authorized(AgentRole.PLANNER, "format_disk") is False


def test_denial_logs_warning(caplog):
    """Test that a denial is recorded on the capability logger."""
    with caplog.at_level(logging.WARNING, logger="agent_kernel.security.capabilities"):
        is_authorized(AgentRole.CODING, "delegate_task")

    assert any(
        "CODING" in record.getMessage() and "delegate_task" in record.getMessage()
        for record in caplog.records
    )


def test_denial_warning_names_plain_values(caplog):
    """Test that enum members are rendered by value in denial warnings."""
    with caplog.at_level(logging.WARNING, logger="agent_kernel.security.capabilities"):
        is_authorized(AgentRole.CODING, ToolName.DELEGATE_TASK)
        is_authorized(AgentRole.VISION, "format_disk")

    messages = [record.getMessage() for record in caplog.records]
    assert messages[0].startswith(
        "SECURITY VIOLATION: role CODING attempted to access delegate_task "
    )
    assert messages[1] == "Access denied: role VISION requested unknown tool format_disk"
    assert not any("AgentRole." in m or "ToolName." in m for m in messages)


def test_search_access_is_not_a_tool_permission():
    """Test that no tool requires SEARCH_ACCESS (it gates web grounding)."""
    for required in TOOL_REQUIREMENTS.values():
        assert Permission.SEARCH_ACCESS not in required
