"""FastMCP server exposing the retrieval index."""

from mcp.server.fastmcp import FastMCP

from kikishell.errors import KikiError
from kikishell.index import RetrievalIndex
from kikishell.utils.text import truncate_preview

# Snippet length in search results.
SNIPPET_CHARS = 200


def create_mcp_server(
    index: RetrievalIndex,
    max_bytes: int = 0,
    max_chars: int = 0,
    excerpt_chars: int = 2500,
) -> FastMCP:
    """Create an MCP server over an index.

    Every tool goes through the index's own locking, so the server can
    share an index with other threads.

    Args:
        index: The index to serve (usually loaded from the persistent store)
        max_bytes: Byte ceiling applied when indexing files
        max_chars: Character ceiling applied when indexing files
        excerpt_chars: Excerpt length for search results

    Returns:
        Configured FastMCP server instance
    """
    mcp = FastMCP(name="kiki")

    @mcp.tool()
    def ls(path: str = "") -> str:
        """List indexed documents.

        Args:
            path: Optional path prefix to filter results

        Returns:
            One line per document with its size in characters
        """
        docs = [doc for doc in index.documents() if doc.path.startswith(path)]
        if not docs:
            return f"No documents found matching '{path}'"
        return "\n".join(f"{doc.path:<60} {len(doc.text):>8} chars" for doc in docs)

    @mcp.tool()
    def read(path: str) -> str:
        """Read an indexed document's text.

        Args:
            path: Document path as shown in ls output

        Returns:
            The stored text
        """
        doc = index.get(path)
        if doc is None:
            return f"Error: Document not found: {path}"
        return doc.text

    @mcp.tool()
    def search(query: str, limit: int = 5) -> str:
        """Keyword search across indexed documents.

        Args:
            query: Words to look for
            limit: Maximum number of results (default: 5)

        Returns:
            Ranked list of matching documents with excerpts
        """
        excerpts = index.search(query, top_k=limit, excerpt_chars=excerpt_chars)
        if not excerpts:
            return f"No results found for: {query}"

        lines = []
        for i, excerpt in enumerate(excerpts, 1):
            lines.append(f"{i}. [{excerpt.score:g}] {excerpt.path}")
            lines.append(f"   {truncate_preview(excerpt.text.replace(chr(10), ' '), SNIPPET_CHARS)}")
            lines.append("")
        return "\n".join(lines)

    @mcp.tool(name="index")
    def index_path(path: str) -> str:
        """Add a file, folder or zip archive to the index.

        Args:
            path: Local path to index

        Returns:
            The indexed document paths
        """
        try:
            docs = index.add_source(path, max_bytes, max_chars)
        except (KikiError, OSError) as e:
            return f"Error: {e}"
        if not docs:
            return f"Nothing to index in {path}"
        return "\n".join(f"indexed: {doc.path}" for doc in docs)

    return mcp
