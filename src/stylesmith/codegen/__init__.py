"""Code generation: resource tables, expression emitter, dispatch trie, file writers."""
