# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from typing import Callable

import pytest

MINIMAL = (
	'<sleigh version="3" bigendian="false" align="1" uniqbase="0x10C3C0">'
	"<sourcefiles>"
	'<sourcefile name="ia.sinc" index="0"/>'
	'<sourcefile name="lockable.sinc" index="1"/>'
	"</sourcefiles>"
	'<spaces defaultspace="ram"></spaces>'
	'<symbol_table scopesize="0" symbolsize="0"></symbol_table>'
	"</sleigh>"
)

SAMPLE = """<sleigh version="3" bigendian="false" align="1" uniqbase="0x10C3C0" maxdelay="0x0" uniqmask="0x80" numsections="0x1">
<!-- x86 excerpt -->
<sourcefiles>
 <sourcefile name="ia.sinc" index="0"/>
 <sourcefile name="lockable.sinc" index="1"/>
</sourcefiles>
<spaces defaultspace="ram">
 <space_unique name="unique" index="4" bigendian="false" delay="0" deadcodedelay="0" size="4" physical="true"/>
 <space name="ram" index="1" bigendian="false" delay="1" size="4" wordsize="1" physical="true"/>
 <space name="register" index="2" bigendian="false" delay="0" size="4" physical="true"/>
 <space_other name="OTHER" index="3" bigendian="true" delay="0" size="8" physical="false"/>
</spaces>
<symbol_table scopesize="1" symbolsize="4">
 <scope id="0x0" parent="0x0"/>
 <userop_head name="segment" id="0x0" scope="0x0"/>
 <varnode_sym_head name="EAX" id="0x1" scope="0x0"/>
 <subtable_sym_head name="instruction" id="0x2" scope="0x0"/>
 <value_sym_head name="imm8" id="0x3" scope="0x0"/>
 <userop name="segment" id="0x0" scope="0x0" index="0"/>
 <varnode_sym name="EAX" id="0x1" scope="0x0" space="register" offset="0x0" size="4"></varnode_sym>
 <subtable_sym name="instruction" id="0x2" scope="0x0" numct="1">
  <constructor parent="0x2" first="0" length="1" line="0:12">
   <oper id="0x3"/>
   <print piece="MOV EAX, "/>
   <opprint id="0"/>
   <construct_tpl>
    <null/>
    <op_tpl code="COPY">
     <varnode_tpl><const_tpl type="spaceid" name="register"/><const_tpl type="real" val="0x0"/><const_tpl type="real" val="0x4"/></varnode_tpl>
     <varnode_tpl><const_tpl type="handle" val="0" s="space"/><const_tpl type="handle" val="0" s="offset"/><const_tpl type="handle" val="0" s="size"/></varnode_tpl>
    </op_tpl>
   </construct_tpl>
  </constructor>
  <decision number="0" context="false" start="0" size="0">
   <pair id="0">
    <instruct_pat><pat_block offset="0" nonzero="1"><mask_word mask="0xff000000" val="0xb8000000"/></pat_block></instruct_pat>
   </pair>
  </decision>
 </subtable_sym>
 <value_sym name="imm8" id="0x3" scope="0x0">
  <tokenfield bigendian="false" signbit="false" bitstart="0" bitend="7" bytestart="1" byteend="1" shift="0"/>
 </value_sym>
</symbol_table>
</sleigh>
"""


def wrap(symbols: str = "", *, headers: str = "") -> str:
	"""A complete document whose symbol table holds `headers` then `symbols`."""
	return (
		'<sleigh bigendian="true" align="4" uniqbase="0x1000">'
		"<sourcefiles></sourcefiles>"
		'<spaces defaultspace="ram">'
		'<space name="ram" index="1" bigendian="true" delay="1" size="4" physical="true"/>'
		"</spaces>"
		'<symbol_table scopesize="1" symbolsize="1">'
		'<scope id="0x0" parent="0x0"/>'
		f"{headers}{symbols}"
		"</symbol_table>"
		"</sleigh>"
	)


@pytest.fixture
def minimal_text() -> str:
	return MINIMAL


@pytest.fixture
def sample_text() -> str:
	return SAMPLE


@pytest.fixture
def document() -> Callable[..., str]:
	return wrap
