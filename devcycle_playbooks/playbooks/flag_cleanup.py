"""
Feature flag lifecycle cleanup playbook

Drives an agent through removing a fully rolled out DevCycle feature: confirm
targeting, resolve the served values, inline them in code, then retire the
feature and its variables through the DevCycle MCP tools.
"""

from ..registry.models import (
    ChecklistItem, CodeSample, Link, Parameter, Playbook, PlaybookKind, Step, ToolReference,
    TroubleshootingEntry
)

SEARCH_SAMPLE = """
git grep -n -e "useVariableValue" -e "variableValue" -e "variable_value" -e "{{ feature_key }}"
"""

BEFORE_SAMPLE = """
const showNewCheckout = useVariableValue('new-checkout', false)

if (showNewCheckout) {
  renderNewCheckout()
} else {
  renderLegacyCheckout()
}
"""

AFTER_SAMPLE = """
renderNewCheckout()
"""

PYTHON_BEFORE_SAMPLE = """
def checkout(user, cart):
    if devcycle_client.variable_value(user, "new-checkout", False):
        return new_checkout(cart)
    return legacy_checkout(cart)
"""

PYTHON_AFTER_SAMPLE = """
def checkout(user, cart):
    return new_checkout(cart)
"""


def feature_cleanup_playbook() -> Playbook:
    return Playbook(
        id="devcycle-feature-cleanup",
        title="Clean up a completed DevCycle feature",
        kind=PlaybookKind.LIFECYCLE,
        summary=(
            "Remove a feature that now serves one variation everywhere: verify targeting, inline the "
            "served variable values, delete dead code, then mark the feature complete and archive "
            "its variables."
        ),
        tags=["devcycle", "cleanup", "lifecycle", "mcp"],
        parameters=[
            Parameter("feature_key", "Key of the feature to clean up", required=True),
            Parameter("keep_variation", "Variation whose values stay in the code",
                      default="the variation served in production"),
        ],
        tools=[
            ToolReference("list-features", "Search features and list their variables"),
            ToolReference("list-feature-targeting", "Targeting rules of a feature per environment"),
            ToolReference("fetch-feature-variations", "Variations of a feature with their variable values"),
        ],
        prerequisites=[
            "The DevCycle MCP server is connected and authenticated for the project",
            "A clean working tree on a new branch",
            "The test suite runs locally",
        ],
        steps=[
            Step(
                title="Locate the feature",
                body=(
                    "Call `list-features` with the search term `{{ feature_key }}`. Confirm exactly one "
                    "feature matches and record the keys of every variable it owns."
                ),
                uses_tools=["list-features"],
            ),
            Step(
                title="Confirm targeting serves a single variation",
                body=(
                    "Call `list-feature-targeting` for the feature. In every environment the feature must "
                    "serve one variation to all users: a single All Users rule with no rollout or "
                    "percentage split. Keep {{ keep_variation }}. If environments serve different "
                    "variations, stop and report the difference instead of continuing."
                ),
                uses_tools=["list-feature-targeting"],
            ),
            Step(
                title="Resolve the variable values",
                body=(
                    "Call `fetch-feature-variations` and note the value of each variable in the kept "
                    "variation. These values replace every variable read in the code."
                ),
                uses_tools=["fetch-feature-variations"],
            ),
            Step(
                title="Find every variable read",
                body=(
                    "Search the repository for each variable key recorded in step 1 and for SDK "
                    "evaluation calls. Include configuration files, tests and other services that "
                    "share the project."
                ),
                code_samples=[CodeSample("bash", SEARCH_SAMPLE, title="Search for usages")],
            ),
            Step(
                title="Inline the served values",
                body=(
                    "Replace each variable read with its resolved value, then simplify the surrounding "
                    "code: collapse conditionals, delete the branch that can no longer run and remove "
                    "imports and helpers that become unused."
                ),
                code_samples=[
                    CodeSample("typescript", BEFORE_SAMPLE, title="Before"),
                    CodeSample("typescript", AFTER_SAMPLE, title="After"),
                    CodeSample("python", PYTHON_BEFORE_SAMPLE, title="Before (Python)"),
                    CodeSample("python", PYTHON_AFTER_SAMPLE, title="After (Python)"),
                ],
            ),
            Step(
                title="Run the tests",
                body=(
                    "Run the test suite, linters and type checks. Update tests that mocked the variable so "
                    "they exercise the kept behaviour only."
                ),
            ),
            Step(
                title="Mark the feature complete",
                body=(
                    "After the code change is merged and deployed, call `update-feature-status` to set "
                    "the feature status to complete, serving the kept variation."
                ),
                uses_tools=["update-feature-status"],
                introduces_tools=[
                    ToolReference("update-feature-status", "Change the status of a feature", mutating=True),
                ],
            ),
            Step(
                title="Archive the variables",
                body=(
                    "Call `update-variable-status` to archive each variable from step 1 that no code "
                    "reads any more. Skip variables that other features still use."
                ),
                uses_tools=["update-variable-status", "list-features"],
                introduces_tools=[
                    ToolReference("update-variable-status", "Change the status of a variable", mutating=True),
                ],
            ),
        ],
        checklist=[
            ChecklistItem("Every environment serves the same variation to all users"),
            ChecklistItem("No code, configuration or test still reads any of the feature variables"),
            ChecklistItem("No other feature uses the variables being archived"),
            ChecklistItem("The code change is deployed to production before the feature status changes"),
            ChecklistItem("The pull request lists the removed variables and the kept values", blocking=False),
        ],
        troubleshooting=[
            TroubleshootingEntry(
                symptom="Targeting differs between environments",
                cause="The feature is still rolling out or was only partially released",
                remedy="Stop the cleanup and ask the feature owner to finish the release first",
            ),
            TroubleshootingEntry(
                symptom="Archiving a variable is rejected",
                cause="The variable is still attached to an active feature",
                remedy="Mark the feature complete first, or leave variables that other features use",
            ),
            TroubleshootingEntry(
                symptom="Behaviour changed in a service that was not edited",
                cause="Another repository read the archived variable and now receives its default",
                remedy="Restore the variable status and repeat the usage search across all services",
            ),
        ],
        links=[
            Link("DevCycle documentation", "https://docs.devcycle.com"),
            Link("DevCycle dashboard", "https://app.devcycle.com"),
        ],
    )
