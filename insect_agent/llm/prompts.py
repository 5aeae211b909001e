CANDIDATE_PROMPT_PREAMBLE = """I'm showing you an image of an insect. Your task is to identify which type of insect this is from the provided candidates, using both the visual appearance and the knowledge provided about each candidate. YOUR OUTPUT should be just the insect candidate name, no need of any justification.

Candidates:
"""

CANDIDATE_PROMPT_CLOSING = """
Analyze the image carefully and compare the visual characteristics of the insect with the knowledge provided for each candidate. Then, give your prediction on which candidate is most likely correct. YOUR OUTPUT should be just the insect candidate name, no need of any justification."""

NO_KNOWLEDGE_TEXT = "No specific visual knowledge available for this candidate."
