"""
Classification and form-scoring pipeline.

    Stage 1: Feature extraction (formglow.preprocessing)
    Stage 2: Exercise recognition (heuristic rules + learned boosts, or neural;
             multi-frame motion rules over a rolling window)
    Stage 3: Form assessment (weighted checkpoints per exercise)
"""
