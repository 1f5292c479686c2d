"""Domain layer: reconciliation of mint requests with on-chain token ids."""
