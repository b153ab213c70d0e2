"""
Evaluation suite -- code-based evals for every stage of prompt generation.

Run evals: pytest evals/ -v
Run one area: pytest evals/tasks/test_pipeline_evals.py -v

No test reaches a real model: the LLM client is an AsyncMock (see conftest.py).
"""
