"""Doc Reader MCP - page, chunk and sheet level access to local documents."""
