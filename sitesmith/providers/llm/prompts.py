"""Prompt templates for the generation collaborator."""

from __future__ import annotations

from sitesmith.models.generation import Classification

CLASSIFY_PROMPT = (
    "Project: {prompt}. "
    "Return either 'node' or 'react' based on what you think this project should be. "
    "Only return a single word: 'node' or 'react'."
)

BASE_PROMPT = """\
You are an expert web developer. Respond with the complete project as a series
of file actions, one per file, using exactly this markup:

<action type="file" path="relative/path/to/file">
FILE CONTENTS
</action>

Write every file in full. Do not wrap the actions in any other markup and do
not add explanations between them.
"""

_FRAMEWORK_REQUESTS = {
    Classification.REACT: (
        "Generate a React application (Vite, TypeScript) that is {prompt}.\n"
        "The entry point is src/main.tsx and the root component is src/App.tsx."
    ),
    Classification.NODE: (
        "Generate a Node.js application with Express that serves {prompt}.\n"
        "package.json must define a \"dev\" script that starts the server and "
        "the server must log the URL it listens on."
    ),
}

_HIDDEN_FILES = (
    "Here is a list of files that exist on the file system but are not being shown to you:\n"
    "- .gitignore\n"
    "- package-lock.json\n"
)


def build_generation_prompt(classification: Classification, prompt: str) -> str:
    request = _FRAMEWORK_REQUESTS[classification].format(prompt=prompt)
    return f"{BASE_PROMPT}\n{request}\n\n{_HIDDEN_FILES}"
