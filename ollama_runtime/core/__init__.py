"""
Core engine for installing and running Ollama.

The `OllamaRuntime` facade composes the release index, the on-disk store and
the `Installer`, and hands out `OllamaServer` handles for running processes.
Liveness is judged by the `HealthProbe`.
"""
