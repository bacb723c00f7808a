"""GitHub integration - webhook events, REST client, and the report comment.

Runs as a GitHub App webhook or a GitHub Action and comments on PRs with:
  - The number of analyzed files
  - Complexity before and after for each changed JS/TS file
  - The change, flagged as an improvement or a regression
"""
