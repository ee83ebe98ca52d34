"""
BookVetting v1.0 - Book Evaluation & PDF Storage Tiering

Evaluates submitted books for biblical alignment with an LLM and keeps
each book's PDF in the storage tier its score calls for:
- Evaluation: two-tier scoring with escalation on borderline scores
- Storage: temp -> active -> archived migrations driven by a job queue
"""

__version__ = "1.0.0"
__author__ = "BookVetting Team"
