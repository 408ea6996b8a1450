 # This module handles Context engineering

# +---------------------+        +---------------------------+
# |   Session store     |        |   Memory filesystem       |
# |---------------------|        |---------------------------|
# | Last 50 turns       |        | /memories/*.xml           |
# | In process, per id  |        | On disk, agent managed    |
# +---------------------+        +---------------------------+
#          \                              /
#           \                   (tool calls: view, create,
#            \                   str_replace, insert, ...)
#             v                          /
# +------------------------------+      /
# |           Context            | <---+
# |------------------------------|
# | System instructions          |
# | Skills registry              |
# | Transcript + tool results    |
# +------------------------------+
#         |
#         v
#   [LLM / tool call loop]
