"""System prompt for the AI-written run summary."""

SUMMARY_SYSTEM_PROMPT = """You are an expert QA engineer AI. Given the results of an AI-enhanced test run, produce a concise, actionable natural-language summary. Focus on:

1. Execution health: how many actions ran and how many failed
2. Detected errors: the dominant categories and the most severe findings
3. Generated tests: what the new candidate tests cover
4. Recommendations: what should be investigated or fixed first

Be concise but specific. Reference error names and test names where relevant. Write 3-8 sentences."""


def build_summary_prompt(run_results_json: str, error_summary: str) -> str:
    """Build the user message for the summary AI call."""
    return (
        f"## Test Run Results\n\n```json\n{run_results_json}\n```\n\n"
        f"## Error Summary\n\n{error_summary}\n\n"
        f"Generate a concise, actionable summary of these test results."
    )
