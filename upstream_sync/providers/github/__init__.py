"""GitHub provider gateway built on githubkit."""
