"""
Pipeline modules for the 3-stage lecture Q&A architecture.

Stage 1: Query Routing      (router.py, registry.py)
Stage 2: Retrieval          (retrieval.py)
Stage 3: Answer Synthesis   (synthesis.py)

Orchestrated by: orchestrator.py
"""
