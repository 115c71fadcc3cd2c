# Example usage of doc_reader_mcp server

from mcp import StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp import ClientSession
import asyncio
import os
import sys


async def main(document_path: str, directory_path: str):
    """Example of using doc_reader_mcp server."""

    # Configure to MCP server
    server_params = StdioServerParameters(
        command=sys.executable,
        args=["-m", "doc_reader_mcp.server"],
    )

    print("=" * 50)
    print("Doc Reader MCP Server Example")
    print("=" * 50)

    async with stdio_client(server_params) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()
            print("\nConnected to doc_reader_mcp server\n")

            # List available tools
            tools = await session.list_tools()
            print(f"\nAvailable tools: {len(tools.tools)}")
            for tool in tools.tools:
                print(f"   - {tool.name}")

            # Example 1: See which documents are available
            print("\n" + "-" * 50)
            print("Example 1: List directory")
            print("-" * 50)

            listing = await session.call_tool(
                "list_directory",
                arguments={"directory_path": directory_path}
            )
            print(f"\n{listing.content[-1].text}\n")

            # Example 2: Learn how the document is divided
            print("\n" + "-" * 50)
            print("Example 2: Document info")
            print("-" * 50)

            info = await session.call_tool(
                "get_document_info",
                arguments={"file_path": document_path}
            )
            print(f"\n{info.content[-1].text}\n")

            # Example 3: Read the first unit
            print("\n" + "-" * 50)
            print("Example 3: Read page 1")
            print("-" * 50)

            page = await session.call_tool(
                "read_document_page",
                arguments={"file_path": document_path, "page_or_sheet": 1}
            )
            print(f"\nResult: {page.content[-1].text[:300]}...\n")

            # Example 4: Search
            print("\n" + "-" * 50)
            print("Example 4: Search")
            print("-" * 50)

            matches = await session.call_tool(
                "search_document",
                arguments={"file_path": document_path, "query": "the"}
            )
            print(f"\n{matches.content[-1].text[:500]}\n")

            # Example 5: Read everything, capped
            print("\n" + "-" * 50)
            print("Example 5: Read full document (max 3 units)")
            print("-" * 50)

            full = await session.call_tool(
                "read_full_document",
                arguments={"file_path": document_path, "max_chunks": 3}
            )
            print(f"\nResult: {full.content[-1].text[:500]}...\n")

            # Example 6: Get supported formats
            print("\n" + "-" * 50)
            print("Example 6: Get Supported Formats")
            print("-" * 50)

            formats = await session.call_tool(
                "get_supported_formats",
                arguments={}
            )
            print(f"\nSupported formats info:\n{formats.content[-1].text}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python example_usage.py /absolute/path/to/document [directory]")
        sys.exit(1)
    document = sys.argv[1]
    directory = sys.argv[2] if len(sys.argv) > 2 else os.path.dirname(document)
    asyncio.run(main(document, directory))
