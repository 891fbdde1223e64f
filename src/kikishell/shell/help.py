"""Help text for the interactive shell."""

HELP_TEXT = """
kiki - local LLM shell

=== Running ===
  kiki                            interactive shell
  kiki ask "question"             one-shot question
  kiki gen PATH "prompt"          generate a code file
  kiki index add|search|info|clear
  kiki serve                      MCP server over the index

=== Asking ===
  ?question                       ask the LLM (uses profile, stream, files, rag)
  anything else                   runs via /bin/bash -lc
  cd DIR                          change directory (~ allowed)

=== Internal commands ===
  :help [topic]                   this help (topics: file, ctx, ctx-size, rag, history)
  :profile fast|deep|none         sampling profile
  :stream on|off                  streamed output
  :nofence on|off                 strip ``` code fences from answers
  :timeout [SEC]                  request timeout

  :ctx set key=value              add to the [Context] section of the system prompt
  :ctx show | :ctx clear

  :ctx-size [N]                   target context size (the server must be restarted)

  :rag on|off                     retrieval on questions
  :rag add PATH                   index a file, folder or zip
  :rag query TEXT                 show matching excerpts
  :rag stats | :rag clear

  :file add PATH                  attach a file to every question
  :file list | :file rm N | :file clear

  :history show [N]               last N questions
  :history search REGEX [N]       search questions and answers
  :history path

  :gen PATH PROMPT...             generate code, confirm, save
  :bash                           nested interactive bash (exit to return)
  :exit | :quit
"""

TOPICS = {
    "file": """
  :file add /var/log/messages     attach (kiki -f PATH ask ... for one-shot)
  :file list
  :file rm 1
  :file clear
  Limits: LLM_FILE_MAX_BYTES (default 256KB), LLM_FILE_MAX_CHARS (default 20000)
""",
    "ctx": """
  Context is appended to the system prompt as a [Context] section.
  :ctx set cluster=prod
  :ctx set ns=kube-system
  :ctx show
  :ctx clear
""",
    "ctx-size": """
  The server's context window in tokens. kiki plans requests against it:
  larger inputs are read in parts and summarised before answering.
  Setting it here does not resize the server; restart llama.cpp with --ctx-size.
  :ctx-size 16384
  Environment: LLM_CTX_TARGET, LLM_CTX_OBSERVED, KIKI_CTX_HEADROOM
""",
    "rag": """
  Keyword retrieval over indexed files, generated code and past questions.
  :rag on
  :rag add ~/notes
  :rag query nginx timeout
  Environment: LLM_RAG, LLM_RAG_TOPK, LLM_RAG_MAX_CHARS, KIKI_RAG_SCORER, KIKI_INDEX_PATH
""",
    "history": """
  :history show 20
  :history search "oom|killed" 10
  :history path
  Environment: LLM_HISTORY, LLM_HISTORY_PATH, LLM_HISTORY_PREVIEW
""",
}


def help_text(topic: str = "") -> str:
    topic = topic.strip().lower()
    if not topic:
        return HELP_TEXT
    if topic in TOPICS:
        return TOPICS[topic]
    return HELP_TEXT + f"\ntopics: {' | '.join(TOPICS)}\n"
