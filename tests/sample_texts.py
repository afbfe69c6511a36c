STUDY_TEXT = (
    "Photosynthesis is the process plants use to convert sunlight into chemical energy. "
    "First, chlorophyll absorbs light in the leaves. "
    "Then, water molecules are split and oxygen is released. "
    "Finally, carbon dioxide is fixed into glucose during the Calvin cycle. "
    "This is an important biological process for life on Earth."
)

ML_TEXT = "Machine learning is important. It uses algorithms. Neural networks are key."
