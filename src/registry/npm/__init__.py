"""NPM collaborators used by the lookup strategies: CLI runner and registry client."""
