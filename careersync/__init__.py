"""CareerSync: resume-to-job matching backed by a generative-AI service."""

__version__ = "0.1.0"
