"""HTTP clients, retry policy and pagination for GitHub and Gitea."""
