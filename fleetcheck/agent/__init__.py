"""Client for the per-host diagnostics agent."""

from .client import AgentClient, AgentError, AgentUnavailableError
