"""Tests for tool descriptors."""

import pydantic
import pytest
from pydantic import BaseModel

from sarufi.llm.tools import (
    DECISION_TOOL_NAME,
    Tool,
    assemble_tools,
    build_decision_tool,
    serialize_tool_output,
)


class InventoryArgs(BaseModel):
    product_id: str
    size: float


async def _check_inventory(args: InventoryArgs):
    return {"product_id": args.product_id, "size": args.size, "in_stock": True}


class TestDecisionTool:
    def test_named_answer_with_decision_schema(self):
        tool = build_decision_tool()

        assert tool.name == DECISION_TOOL_NAME == "answer"
        assert tool.execute is None
        assert set(tool.input_schema["properties"]) == {
            "strategy_analysis",
            "flow_decision",
            "action_execution",
            "meta",
        }


class TestAssembleTools:
    def test_decision_tool_appended(self):
        lookup = Tool(name="lookup", description="d", input_schema={"type": "object"})

        tools = assemble_tools([lookup])

        assert [t.name for t in tools] == ["lookup", "answer"]

    def test_caller_tool_named_answer_is_replaced(self):
        impostor = Tool(name="answer", description="not the decision", input_schema={})

        tools = assemble_tools([impostor])

        assert len(tools) == 1
        assert tools[0].description != "not the decision"

    def test_no_tools(self):
        assert [t.name for t in assemble_tools()] == ["answer"]


class TestFromModel:
    def test_schema_from_model(self):
        tool = Tool.from_model("check_inventory", "Check stock", InventoryArgs, _check_inventory)

        assert tool.input_schema["required"] == ["product_id", "size"]

    @pytest.mark.asyncio
    async def test_arguments_validated_before_handler(self):
        tool = Tool.from_model("check_inventory", "Check stock", InventoryArgs, _check_inventory)

        result = await tool.execute({"product_id": "nike-1", "size": "9.5"})
        assert result == {"product_id": "nike-1", "size": 9.5, "in_stock": True}

        with pytest.raises(pydantic.ValidationError):
            await tool.execute({"size": 9})


class TestSerializeToolOutput:
    def test_string_passthrough(self):
        assert serialize_tool_output("ok") == "ok"

    def test_model_dumped_as_json(self):
        assert serialize_tool_output(InventoryArgs(product_id="a", size=8)) == (
            '{"product_id":"a","size":8.0}'
        )

    def test_mapping_dumped_as_json(self):
        assert serialize_tool_output({"count": 2}) == '{"count": 2}'
