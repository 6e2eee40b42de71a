"""Dependency checker for genoprot.

Performs pre-flight checks for the external tools each flow invokes.
"""

import re
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

from packaging import version

from genoprot.core.pipeline_types import Flow
from genoprot.exceptions import DependencyError
from genoprot.utils.logging import get_logger

ALL_FLOWS: Tuple[Flow, ...] = tuple(Flow)


@dataclass
class Tool:
    """Tool dependency definition."""

    key: str
    name: str
    purpose: str
    install_hint: str
    flows: Tuple[Flow, ...] = ALL_FLOWS
    min_version: Optional[str] = None
    version_arg: str = "--version"
    # Only needed when the named parameter is enabled
    condition: Optional[str] = None
    alt_names: List[str] = field(default_factory=list)


def find_tool(name: str, alt_names: Optional[List[str]] = None) -> Optional[str]:
    """Find a tool by name, checking alternative names if provided."""
    if shutil.which(name) is not None:
        return name
    for alt in alt_names or []:
        if shutil.which(alt) is not None:
            return alt
    return None


def get_tool_version(tool_name: str, version_arg: str = "--version") -> Optional[str]:
    """Get version string from a tool, or None when it cannot be determined."""
    try:
        result = subprocess.run(
            [tool_name, version_arg],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    match = re.search(r"(\d+\.\d+(?:\.\d+)?[a-z]?)", result.stdout + result.stderr)
    return match.group(1) if match else None


def compare_versions(current: str, minimum: str) -> bool:
    """True if *current* >= *minimum*; unparseable versions are accepted."""
    try:
        return version.parse(current) >= version.parse(minimum)
    except version.InvalidVersion:
        return True


_PROTEINS = (Flow.PROTEINS,)

TOOLS: List[Tool] = [
    Tool(
        key="skewer",
        name="skewer",
        purpose="Adapter and quality trimming",
        install_hint="conda install -c bioconda skewer",
        flows=(Flow.PROTEINS, Flow.LNCRNA, Flow.FUSION, Flow.QUANTIFY),
    ),
    Tool(
        key="star",
        name="STAR",
        purpose="Spliced read alignment and genome indexing",
        install_hint="conda install -c bioconda star",
        min_version="2.7.0",
    ),
    Tool(
        key="samtools",
        name="samtools",
        purpose="FASTA and BAM indexing",
        install_hint="conda install -c bioconda samtools",
        min_version="1.10",
    ),
    Tool(
        key="gatk",
        name="gatk",
        purpose="Variant calling (HaplotypeCaller)",
        install_hint="conda install -c bioconda gatk4",
        flows=_PROTEINS,
        condition="call_variants",
    ),
    Tool(
        key="snpeff",
        name="snpEff",
        purpose="Variant-effect annotation",
        install_hint="conda install -c bioconda snpeff",
        flows=_PROTEINS,
        version_arg="-version",
        condition="call_variants",
    ),
    Tool(
        key="stringtie",
        name="stringtie",
        purpose="Transcript assembly",
        install_hint="conda install -c bioconda stringtie",
        flows=(Flow.PROTEINS, Flow.LNCRNA),
        condition="assemble",
    ),
    Tool(
        key="slncky",
        name="slncky.v1.0",
        purpose="lncRNA classification",
        install_hint="See https://github.com/slncky/slncky",
        flows=(Flow.LNCRNA,),
        alt_names=["slncky"],
    ),
    Tool(
        key="star_fusion",
        name="STAR-Fusion",
        purpose="Gene fusion calling",
        install_hint="conda install -c bioconda star-fusion",
        flows=(Flow.PROTEINS, Flow.FUSION),
        condition="fusion",
    ),
    Tool(
        key="rsem_prepare",
        name="rsem-prepare-reference",
        purpose="RSEM reference preparation",
        install_hint="conda install -c bioconda rsem",
        flows=(Flow.QUANTIFY,),
    ),
    Tool(
        key="rsem_calculate",
        name="rsem-calculate-expression",
        purpose="Expression quantification",
        install_hint="conda install -c bioconda rsem",
        flows=(Flow.QUANTIFY,),
    ),
    Tool(
        key="infer_experiment",
        name="infer_experiment.py",
        purpose="Library strandedness inference (RSeQC)",
        install_hint="conda install -c bioconda rseqc",
        condition="infer_strandedness",
    ),
    Tool(
        key="gtf_to_genepred",
        name="gtfToGenePred",
        purpose="Gene model to genePred conversion",
        install_hint="conda install -c bioconda ucsc-gtftogenepred",
        flows=(Flow.LNCRNA, Flow.QUANTIFY, Flow.STRANDEDNESS, Flow.PROTEINS),
        condition="bed12",
    ),
    Tool(
        key="genepred_to_bed",
        name="genePredToBed",
        purpose="genePred to BED12 conversion",
        install_hint="conda install -c bioconda ucsc-genepredtobed",
        flows=(Flow.LNCRNA, Flow.QUANTIFY, Flow.STRANDEDNESS, Flow.PROTEINS),
        condition="bed12",
    ),
]


class DependencyChecker:
    """Check and report on tool dependencies."""

    def __init__(self, logger=None, executables: Optional[Mapping[str, str]] = None):
        self.logger = logger or get_logger("dependency_checker")
        self.executables = dict(executables or {})
        self.missing: List[Tool] = []
        self.found_tools: List[str] = []
        self.version_warnings: List[str] = []

    def tools_for(self, flow: Optional[Flow] = None, active: Optional[set] = None) -> List[Tool]:
        """Tools used by *flow* (all flows when None).

        ``active`` names the optional features enabled for the run; tools with
        a ``condition`` outside it are left out. ``None`` keeps every tool.
        """
        selected = []
        for tool in TOOLS:
            if flow is not None and Flow.parse(flow) not in tool.flows:
                continue
            if active is not None and tool.condition and tool.condition not in active:
                continue
            selected.append(tool)
        return selected

    def check_all(self, flow: Optional[Flow] = None, active: Optional[set] = None) -> bool:
        """Check dependencies; True if every selected tool is available."""
        self.logger.info("Checking dependencies...")
        self.missing = []
        self.found_tools = []
        self.version_warnings = []

        for tool in self.tools_for(flow, active):
            name = self.executables.get(tool.key, tool.name)
            found_name = find_tool(name, tool.alt_names)
            if found_name is None:
                self.missing.append(tool)
                self.logger.error(f"✗ {name} not found")
                continue

            self.found_tools.append(found_name)
            if tool.min_version:
                current_version = get_tool_version(found_name, tool.version_arg)
                if current_version and not compare_versions(current_version, tool.min_version):
                    warning = f"{tool.name}: version {current_version} < recommended {tool.min_version}"
                    self.version_warnings.append(warning)
                    self.logger.warning(f"⚠ {warning}")
                else:
                    self.logger.debug(f"✓ {tool.name} v{current_version or 'unknown'}")
            else:
                self.logger.debug(f"✓ {tool.name} found")

        return not self.missing

    def require(self, flow: Optional[Flow] = None, active: Optional[set] = None) -> None:
        """Raise DependencyError naming every missing tool."""
        if not self.check_all(flow, active):
            names = ", ".join(self.executables.get(t.key, t.name) for t in self.missing)
            raise DependencyError(f"Missing required tools: {names}")

    def print_report(self) -> None:
        """Print a dependency report."""
        print("\n" + "=" * 70)
        print("genoprot Dependency Check")
        print("=" * 70)

        if self.found_tools:
            print("\n✓ Found tools:")
            for tool in sorted(self.found_tools):
                print(f"  - {tool}")

        if self.version_warnings:
            print("\n⚠ Version warnings:")
            for warning in self.version_warnings:
                print(f"  - {warning}")

        if self.missing:
            print("\n✗ Missing tools:")
            for tool in self.missing:
                print(f"  - {tool.name}")
                print(f"    Purpose: {tool.purpose}")
                print(f"    Install: {tool.install_hint}")
            print("\n" + "=" * 70)
            print("ERROR: Cannot proceed without required dependencies.")
            print("=" * 70 + "\n")
        else:
            print("\n" + "=" * 70)
            print("✓ All required dependencies satisfied!")
            print("=" * 70 + "\n")


def active_features(parameters) -> set:
    """Optional tool groups a run with *parameters* will invoke."""
    active = set()
    if parameters.command is Flow.PROTEINS and not parameters.skip_variant_analysis:
        active.add("call_variants")
    if parameters.command is Flow.LNCRNA or parameters.do_isoform_analysis:
        active.add("assemble")
    if parameters.command is Flow.FUSION or parameters.do_fusion_analysis:
        active.add("fusion")
    infer = parameters.command is Flow.STRANDEDNESS or (
        parameters.infer_strandedness and not parameters.strand_specific
    )
    if infer:
        active.add("infer_strandedness")
    if infer or parameters.command is Flow.LNCRNA:
        active.add("bed12")
    return active
