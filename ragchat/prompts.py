"""Prompt templates for query rewriting and grounded answering."""

REFUSAL_MESSAGE = "I could not find the answer in the provided document."

REWRITE_INSTRUCTION = (
    'Rewrite the "Follow Up user Question" into a complete, standalone question '
    "that can be understood without the chat history.\n"
    "Follow Up user Question: {question}\n"
    "Only output the rewritten question and nothing else."
)

ANSWER_PROMPT_TEMPLATE = (
    "You are a {persona}.\n"
    "You will be given a context of relevant information and a user question.\n"
    "Your task is to answer the user's question based ONLY on the provided "
    "context.\n"
    'If the answer is not in the context, you must say "{refusal}"\n'
    "Keep your answers clear, concise, and educational.\n\n"
    "Context: {context}\n"
    "User Question: {question}\n"
)

CONTEXT_SEPARATOR = "\n\n---\n\n"
