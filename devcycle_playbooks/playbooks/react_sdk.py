"""
Installation guide for the DevCycle React SDK
"""

from ..registry.models import (
    CodeSample, EnvVar, Link, Parameter, Playbook, PlaybookKind, Step, TroubleshootingEntry
)

PROVIDER_SAMPLE = """
import React from 'react'
import ReactDOM from 'react-dom/client'
import { withDevCycleProvider } from '@devcycle/react-client-sdk'
import App from './App'

const AppWithDevCycle = withDevCycleProvider({
  sdkKey: process.env.REACT_APP_DEVCYCLE_CLIENT_SDK_KEY,
  user: { user_id: 'anonymous', isAnonymous: true },
  options: { logLevel: 'warn' },
})(App)

const root = ReactDOM.createRoot(document.getElementById('root'))
root.render(<AppWithDevCycle />)
"""

VARIABLE_SAMPLE = """
import { useVariableValue } from '@devcycle/react-client-sdk'

export default function NewExperienceBanner() {
  const enabled = useVariableValue('{{ variable_key }}', false)

  if (!enabled) {
    return null
  }
  return <div className="banner">The new experience is enabled</div>
}
"""

IDENTIFY_SAMPLE = """
import { useEffect } from 'react'
import { useDevCycleClient } from '@devcycle/react-client-sdk'

export function useIdentifyDevCycleUser(currentUser) {
  const devcycleClient = useDevCycleClient()

  useEffect(() => {
    if (!currentUser) {
      devcycleClient.resetUser()
      return
    }
    devcycleClient.identifyUser({
      user_id: currentUser.id,
      email: currentUser.email,
      customData: { plan: currentUser.plan },
    })
  }, [devcycleClient, currentUser])
}
"""

READY_SAMPLE = """
import { useIsDevCycleInitialized } from '@devcycle/react-client-sdk'

export default function DevCycleGate({ children }) {
  const initialized = useIsDevCycleInitialized()

  if (!initialized) {
    return <div className="loading">Loading</div>
  }
  return children
}
"""


def react_sdk_playbook() -> Playbook:
    return Playbook(
        id="devcycle-react-sdk-install",
        title="Install the DevCycle React SDK",
        kind=PlaybookKind.FRAMEWORK_INSTALL,
        summary=(
            "Add DevCycle feature flags to a React application: install the client SDK, "
            "provide the client SDK key, wrap the root component and read variables with hooks."
        ),
        sdk="react",
        tags=["devcycle", "react", "install", "client-sdk"],
        parameters=[
            Parameter("install_command", "Package manager command that adds a dependency",
                      default="npm install --save"),
            Parameter("entry_file", "File that renders the root component", default="src/index.jsx"),
            Parameter("variable_key", "Variable used to verify the installation", default="my-test-variable"),
        ],
        env_vars=[
            EnvVar("REACT_APP_DEVCYCLE_CLIENT_SDK_KEY",
                   "Client SDK key of the target DevCycle environment (starts with dvc_client_)"),
        ],
        prerequisites=[
            "A React 16.8+ application (hooks are required)",
            "A DevCycle project with at least one environment",
            "Access to the client SDK key of that environment from the DevCycle dashboard",
        ],
        steps=[
            Step(
                title="Install the SDK package",
                body="Add the React SDK to the application dependencies from the project root.",
                code_samples=[
                    CodeSample("bash", "{{ install_command }} @devcycle/react-client-sdk"),
                ],
            ),
            Step(
                title="Provide the client SDK key",
                body=(
                    "Store the client SDK key in `REACT_APP_DEVCYCLE_CLIENT_SDK_KEY`. Use the client key, "
                    "never the server key: the value ships to every browser. Restart the dev server after "
                    "changing environment files so the bundler picks up the new value."
                ),
                code_samples=[
                    CodeSample("dotenv", "REACT_APP_DEVCYCLE_CLIENT_SDK_KEY=dvc_client_your_key_here",
                               title="Local environment file", filename=".env.local"),
                ],
            ),
            Step(
                title="Wrap the root component",
                body=(
                    "In `{{ entry_file }}`, wrap the root component with `withDevCycleProvider`. The provider "
                    "initializes the SDK in the background and renders immediately; variables return their "
                    "defaults until the configuration arrives. Use `asyncWithDevCycleProvider` instead when "
                    "the first render must already reflect flag values."
                ),
                code_samples=[
                    CodeSample("jsx", PROVIDER_SAMPLE, title="Root component", filename="{{ entry_file }}"),
                ],
            ),
            Step(
                title="Read a variable",
                body=(
                    "Call `useVariableValue` with the variable key and a default of the same type as the "
                    "variable. The component re-renders when the served value changes."
                ),
                code_samples=[
                    CodeSample("jsx", VARIABLE_SAMPLE, title="Reading a boolean variable"),
                ],
            ),
            Step(
                title="Identify the signed-in user",
                body=(
                    "Targeting rules evaluate against the identified user. Call `identifyUser` after sign in "
                    "and `resetUser` after sign out, using `useDevCycleClient` to reach the client."
                ),
                code_samples=[
                    CodeSample("jsx", IDENTIFY_SAMPLE, title="Identity hook"),
                ],
            ),
            Step(
                title="Gate rendering on initialization (optional)",
                body=(
                    "Where a flash of default values is unacceptable, render a placeholder until "
                    "`useIsDevCycleInitialized` reports that the SDK is ready."
                ),
                code_samples=[
                    CodeSample("jsx", READY_SAMPLE, title="Initialization gate"),
                ],
            ),
            Step(
                title="Verify the installation",
                body=(
                    "Create the boolean variable `{{ variable_key }}` in the DevCycle dashboard, target it to "
                    "All Users in the development environment and toggle it. The banner from step 4 should "
                    "appear and disappear without a reload."
                ),
            ),
        ],
        troubleshooting=[
            TroubleshootingEntry(
                symptom="Every variable returns its default value",
                cause="`REACT_APP_DEVCYCLE_CLIENT_SDK_KEY` is empty at build time or holds a server key",
                remedy="Set the client key, restart the dev server and check the network tab for a config request",
            ),
            TroubleshootingEntry(
                symptom="Hooks throw because the DevCycle provider is missing",
                cause="The hook runs in a component rendered outside the wrapped root",
                remedy="Wrap the top-level component (or every separate React root) with the provider",
            ),
            TroubleshootingEntry(
                symptom="The page flashes default content before switching",
                cause="The provider renders before the configuration is fetched",
                remedy="Use asyncWithDevCycleProvider or gate rendering on useIsDevCycleInitialized",
            ),
            TroubleshootingEntry(
                symptom="A variable is always the default even though targeting matches",
                cause="The default value type differs from the variable type in the dashboard",
                remedy="Pass a default of the same type (boolean, string, number or JSON object)",
            ),
            TroubleshootingEntry(
                symptom="The key is undefined in a Vite project",
                cause="Vite only exposes variables with the VITE_ prefix through import.meta.env",
                remedy="Rename the variable with that prefix and read it from import.meta.env in the provider config",
            ),
        ],
        links=[
            Link("React SDK documentation", "https://docs.devcycle.com/sdk/client-side-sdks/react"),
            Link("DevCycle dashboard", "https://app.devcycle.com"),
        ],
    )
