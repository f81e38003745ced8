"""Poll GitHub repositories for new issues and alert a Discord webhook."""
