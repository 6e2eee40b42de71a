"""Reference data resolution and contig naming (genoprot)."""
