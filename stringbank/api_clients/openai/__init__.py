from stringbank.api_clients.openai.translator import OpenAITranslator

__all__ = ["OpenAITranslator"]
