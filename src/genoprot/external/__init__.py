"""External tool invocation builders (genoprot).

Each tool module exposes plain functions that turn typed inputs into a
``StageInvocation`` (command, arguments, expected outputs):

- skewer: read trimming
- star: genome indexing, spliced and chimeric alignment
- samtools: FASTA/BAM indexing
- gatk: sequence dictionary, SplitNCigarReads, HaplotypeCaller, MergeVcfs
- snpeff: variant-effect annotation
- stringtie: transcript assembly and merging
- slncky: lncRNA classification
- star_fusion: fusion calling
- rsem: reference preparation and quantification
- rseqc: strand inference
- ucsc_tools: gene model to BED12
"""

from genoprot.external.base import StageInvocation, ToolRunner, invocation

__all__ = ["StageInvocation", "ToolRunner", "invocation"]
