"""Worker instructions and request messages."""

from __future__ import annotations

DEFAULT_QUESTION = (
    "Please analyze this CSV file and provide a comprehensive overview including data structure, "
    "summary statistics, and key insights."
)

UPLOADED_DATASET_INSTRUCTIONS = """You are a professional data analyst with code interpreter capabilities.

CORE RULES:
- NEVER ask questions, provide the analysis immediately
- ALWAYS create visualizations when requested (histograms, charts, plots)
- Use pandas for data loading and matplotlib for visualizations
- Handle encoding errors gracefully (try utf-8, latin-1, cp1252)
- The dataset is attached to your code interpreter workspace as {file_name}
- Complete the analysis without stopping for user input

VISUALIZATION REQUIREMENTS:
- Use a readable figure size, e.g. plt.figure(figsize=(12, 8))
- Add titles and axis labels, and save every figure as PNG

When the analysis is done, end your last message with "Analysis complete"."""

INLINE_DATASET_INSTRUCTIONS = """You are a professional data analyst specializing in CSV data analysis using a Python code interpreter.

When analyzing CSV data:
1. ALWAYS use the code interpreter tool to write and execute Python code
2. Load the CSV text from the message with pandas.read_csv(StringIO(csv_text))
3. Examine the data structure: columns, data types, number of rows
4. Answer the question with concrete numbers from the data
5. Create visualizations when appropriate (matplotlib, seaborn)

When the analysis is done, end your last message with "Analysis complete"."""


def instructions_for(file_name: str, *, inline: bool) -> str:
    if inline:
        return INLINE_DATASET_INSTRUCTIONS
    return UPLOADED_DATASET_INSTRUCTIONS.format(file_name=file_name)


def build_message(question: str, data: bytes, file_name: str, *, inline: bool) -> str:
    """Render the requester message for one question."""
    if not inline:
        return question

    csv_text = data.decode("utf-8-sig", errors="replace")
    return (
        f"Please analyze the following CSV data ({file_name}) and answer this question: {question}\n\n"
        "CSV Data:\n"
        f"```csv\n{csv_text}\n```\n\n"
        "Use the Python code interpreter to:\n"
        "1. Load this CSV data using pandas and StringIO\n"
        "2. Explore the data structure and content\n"
        "3. Answer the specific question with data-driven insights\n"
        "4. Provide visualizations if relevant\n"
    )
