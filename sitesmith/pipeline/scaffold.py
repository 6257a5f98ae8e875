"""Default project files for scaffold-eligible generations."""

from __future__ import annotations

import json
from typing import Mapping, MutableMapping

from sitesmith.models.generation import Classification

SCAFFOLD_CLASSIFICATION = Classification.REACT

_PACKAGE_JSON = json.dumps(
    {
        "name": "generated-react-project",
        "version": "1.0.0",
        "type": "module",
        "scripts": {"dev": "vite"},
        "dependencies": {"react": "^18.2.0", "react-dom": "^18.2.0"},
        "devDependencies": {"vite": "^5.4.2", "@vitejs/plugin-react": "^4.0.0"},
    },
    indent=2,
)

_VITE_CONFIG = """\
import { defineConfig } from 'vite';
import react from '@vitejs/plugin-react';

export default defineConfig({
  plugins: [react()],
  server: {
    port: 3002,
  },
  resolve: {
    extensions: ['.js', '.ts', '.tsx'],
  },
});
"""

_INDEX_HTML = """\
<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>Generated App</title>
  </head>
  <body>
    <div id="root"></div>
    <script type="module" src="/src/main.tsx"></script>
  </body>
</html>
"""

_MAIN_TSX = """\
import { StrictMode } from 'react';
import { createRoot } from 'react-dom/client';
import App from './App';
import './index.css';

createRoot(document.getElementById('root')!).render(
  <StrictMode>
    <App />
  </StrictMode>
);
"""

_APP_TSX = """\
export default function App() {
  return <h1>Hello from your generated app</h1>;
}
"""

_INDEX_CSS = """\
body {
  margin: 0;
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', 'Roboto', sans-serif;
}
"""

DEFAULT_SCAFFOLD: Mapping[str, str] = {
    "package.json": _PACKAGE_JSON,
    "vite.config.ts": _VITE_CONFIG,
    "index.html": _INDEX_HTML,
    "src/main.tsx": _MAIN_TSX,
    "src/App.tsx": _APP_TSX,
    "src/index.css": _INDEX_CSS,
}


def apply_scaffold(
    files: MutableMapping[str, str],
    classification: Classification,
    scaffold: Mapping[str, str] = DEFAULT_SCAFFOLD,
    eligible: Classification = SCAFFOLD_CLASSIFICATION,
) -> list[str]:
    """Fill in missing default files in place and return the added paths."""
    if classification is not eligible:
        return []
    added: list[str] = []
    for path, content in scaffold.items():
        if path not in files:
            files[path] = content
            added.append(path)
    return added
