"""Prompt templates for slang translation.

The translation prompt asks for the translation on top, a line containing
only SEPARATOR, then the explanation written in the source language.
"""

SEPARATOR = "---"

SYSTEM_PROMPT = (
    "You are an expert linguist and translator specializing in modern, casual "
    "internet slang. You keep translations short, natural and true to the "
    "original nuance."
)

TRANSLATE_PROMPT = """Translate the following text from {source} to {target}.

Input Text:
\"\"\"
{text}
\"\"\"

Your response must contain two parts, separated by a line containing only "{separator}":
1. Translation: on the first line, only the single most fitting and natural-sounding slang translation. Keep it brief, something you'd see in a casual text conversation. Do not provide multiple options.
2. Explanation: after the "{separator}" separator, a brief explanation of the slang and nuance in the translated text. This explanation must be written in {source}.

Example for "まじ卍" from Japanese to English:
This is wild
{separator}
「This is wild」は、何かが「ヤバい」「すごい」「ありえない」と感じた時に使われる英語の一般的な表現で、「まじ卍」が持つカオスで強調的なエネルギーを捉えています。

Now, process the input text."""

EXPLAIN_PROMPT = (
    'Explain the slang terms and colloquialisms used in the following {language} text: "{text}".\n'
    "Provide a clear and concise explanation for each.\n"
    "If no specific slang is detected, state that the text is fairly standard for informal "
    "{language} or already quite casual.\n"
    "Output only the explanation."
)

EXAMPLES_PROMPT = (
    'Provide 2-3 example sentences in {language} that naturally use the phrase or a key part of: "{text}".\n'
    "The sentences should showcase common usage in everyday conversation and be distinct from the input phrase.\n"
    "Output only the example sentences, each on a new line."
)
