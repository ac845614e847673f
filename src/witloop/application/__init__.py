"""Motor de conversação e parser de diretivas."""
