"""
Generic DevCycle SDK installation guide, with the Python server SDK as worked example
"""

from ..registry.models import (
    ChecklistItem, CodeSample, EnvVar, Link, Parameter, Playbook, PlaybookKind,
    SdkVariant, Step, TroubleshootingEntry
)

VARIANTS = [
    SdkVariant("JavaScript", "@devcycle/js-client-sdk", "npm install --save @devcycle/js-client-sdk", "client"),
    SdkVariant("React", "@devcycle/react-client-sdk", "npm install --save @devcycle/react-client-sdk", "client"),
    SdkVariant("Next.js", "@devcycle/nextjs-sdk", "npm install --save @devcycle/nextjs-sdk", "client and server"),
    SdkVariant("Node.js", "@devcycle/nodejs-server-sdk", "npm install --save @devcycle/nodejs-server-sdk", "server"),
    SdkVariant("Python", "devcycle-python-server-sdk", "pip install devcycle-python-server-sdk", "server"),
    SdkVariant("Go", "github.com/devcyclehq/go-server-sdk/v2", "go get github.com/devcyclehq/go-server-sdk/v2",
               "server"),
    SdkVariant("Java", "com.devcycle:java-server-sdk",
               "implementation 'com.devcycle:java-server-sdk:+' (Gradle)", "server"),
    SdkVariant("Android", "com.devcycle:android-client-sdk",
               "implementation 'com.devcycle:android-client-sdk:+' (Gradle)", "mobile"),
    SdkVariant("iOS", "DevCycle", "Add the DevCycle Swift package or pod 'DevCycle'", "mobile"),
]

INIT_SAMPLE = """
import os

from devcycle_python_sdk import DevCycleLocalClient, DevCycleLocalOptions

options = DevCycleLocalOptions()
devcycle_client = DevCycleLocalClient(os.environ["DEVCYCLE_SERVER_SDK_KEY"], options)
"""

VARIABLE_SAMPLE = """
from devcycle_python_sdk.models.user import DevCycleUser

user = DevCycleUser(user_id="{{ user_id }}")

if devcycle_client.is_initialized():
    enabled = devcycle_client.variable_value(user, "{{ variable_key }}", False)
else:
    enabled = False
"""

SHUTDOWN_SAMPLE = """
import atexit

atexit.register(devcycle_client.close)
"""


def sdk_install_playbook() -> Playbook:
    return Playbook(
        id="devcycle-sdk-install",
        title="Install a DevCycle SDK",
        kind=PlaybookKind.SDK_INSTALL,
        summary=(
            "Choose the DevCycle SDK that matches the host application, configure the right SDK key "
            "and evaluate a first variable. The worked example uses the Python server SDK."
        ),
        sdk="python",
        tags=["devcycle", "install", "server-sdk", "python"],
        parameters=[
            Parameter("variable_key", "Variable used to verify the installation", default="my-test-variable"),
            Parameter("user_id", "User id evaluated during verification", default="user-123"),
        ],
        env_vars=[
            EnvVar("DEVCYCLE_SERVER_SDK_KEY", "Server SDK key (starts with dvc_server_) for backend services"),
            EnvVar("DEVCYCLE_CLIENT_SDK_KEY", "Client SDK key (starts with dvc_client_) for browser code"),
            EnvVar("DEVCYCLE_MOBILE_SDK_KEY", "Mobile SDK key (starts with dvc_mobile_) for native apps"),
        ],
        prerequisites=[
            "A DevCycle project and environment",
            "Knowledge of where the host application runs: browser, server or mobile device",
        ],
        variants=list(VARIANTS),
        steps=[
            Step(
                title="Choose the SDK variant",
                body=(
                    "Pick the SDK from the variants table that matches the runtime evaluating flags. "
                    "Client SDKs evaluate for a single user in the browser; server SDKs evaluate for many "
                    "users inside one process; mobile SDKs run on the device. The rest of this guide shows "
                    "the Python server SDK."
                ),
            ),
            Step(
                title="Install the package",
                body="Install the SDK with the package manager of the project.",
                code_samples=[CodeSample("bash", "pip install devcycle-python-server-sdk")],
            ),
            Step(
                title="Configure the SDK key",
                body=(
                    "Each environment has three keys. Server code reads `DEVCYCLE_SERVER_SDK_KEY`; browser "
                    "code uses `DEVCYCLE_CLIENT_SDK_KEY`; native apps use `DEVCYCLE_MOBILE_SDK_KEY`. Never "
                    "ship a server key to a client."
                ),
                code_samples=[
                    CodeSample("dotenv", "DEVCYCLE_SERVER_SDK_KEY=dvc_server_your_key_here", filename=".env"),
                ],
            ),
            Step(
                title="Initialize one client per process",
                body=(
                    "Create the client once at application startup and share it. The local bucketing client "
                    "downloads the project configuration and evaluates variables in-process."
                ),
                code_samples=[CodeSample("python", INIT_SAMPLE, title="Client setup", filename="feature_flags.py")],
            ),
            Step(
                title="Evaluate a variable",
                body=(
                    "Build a user for the request and read the variable with a default of the same type. "
                    "Until initialization completes, defaults are returned."
                ),
                code_samples=[CodeSample("python", VARIABLE_SAMPLE, title="Variable evaluation")],
            ),
            Step(
                title="Close the client on shutdown",
                body="Closing flushes pending events and stops the configuration polling thread.",
                code_samples=[CodeSample("python", SHUTDOWN_SAMPLE)],
            ),
            Step(
                title="Verify the installation",
                body=(
                    "Create the boolean variable `{{ variable_key }}` in the dashboard, serve `true` to "
                    "All Users in the development environment, and confirm the evaluation in step 5 "
                    "returns `True` for user `{{ user_id }}`."
                ),
            ),
        ],
        checklist=[
            ChecklistItem("The SDK key in use matches the runtime (server, client or mobile)"),
            ChecklistItem("The key is loaded from the environment and not committed to source control"),
            ChecklistItem("Only one client instance is created per process", blocking=False),
        ],
        troubleshooting=[
            TroubleshootingEntry(
                symptom="Every variable returns its default value",
                cause="The client is not initialized yet or `DEVCYCLE_SERVER_SDK_KEY` is missing",
                remedy="Check the key, wait for initialization and enable debug logging on the SDK",
            ),
            TroubleshootingEntry(
                symptom="Authentication errors while fetching the configuration",
                cause="A client or mobile key was given to a server SDK",
                remedy="Copy the server key of the same environment from the dashboard",
            ),
            TroubleshootingEntry(
                symptom="Memory grows in a multi-worker server",
                cause="A new client is created per request",
                remedy="Create the client once per worker process at startup",
            ),
        ],
        links=[
            Link("DevCycle SDK overview", "https://docs.devcycle.com/sdk"),
            Link("Python server SDK", "https://docs.devcycle.com/sdk/server-side-sdks/python"),
        ],
    )
