# reeks.components
# Operator stages, one module per operator family. Collections build these;
# they are not part of the public API.
