"""Motor de comandos de voz e checkout guiado da loja V-Novaa."""

__version__ = "0.1.0"
