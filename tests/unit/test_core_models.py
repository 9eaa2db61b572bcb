# PATH: tests/unit/test_core_models.py
"""
Unit tests for core data models.
"""

import unittest

from core.constants import ErrorCode
from core.exceptions import RpcError
from core.models import (
    BlockData,
    BlockHeader,
    Failure,
    ProofArtifact,
    Success,
    parse_hex_quantity,
)


class TestParseHexQuantity(unittest.TestCase):

    def test_hex_and_decimal(self):
        self.assertEqual(parse_hex_quantity("0x1b4"), 436)
        self.assertEqual(parse_hex_quantity("0X0"), 0)
        self.assertEqual(parse_hex_quantity("42"), 42)
        self.assertEqual(parse_hex_quantity(7), 7)

    def test_missing_or_garbage_rejected(self):
        with self.assertRaises(ValueError):
            parse_hex_quantity(None)
        with self.assertRaises(ValueError):
            parse_hex_quantity("0xzz")


class TestBlockModels(unittest.TestCase):

    def test_header_from_rpc(self):
        header = BlockHeader.from_rpc({
            "number": "0x1312d00",
            "hash": "0xabc",
            "timestamp": "0x65a0b2c0",
            "parentHash": "0xdef",
        })
        self.assertEqual(header, BlockHeader(number=20_000_000, hash="0xabc", timestamp=0x65A0B2C0))

    def test_header_without_number_rejected(self):
        with self.assertRaises(ValueError):
            BlockHeader.from_rpc({"hash": "0xabc"})

    def test_block_data_footprint(self):
        block = BlockData(number=1, block={"hash": "0x1", "transactions": [{}, {}, {}], "gasUsed": "0x10"})
        self.assertEqual(block.hash, "0x1")
        self.assertEqual(block.transaction_count, 3)
        self.assertEqual(block.gas_used, 16)

    def test_empty_block_body(self):
        block = BlockData(number=1, block={})
        self.assertIsNone(block.hash)
        self.assertEqual(block.transaction_count, 0)
        self.assertEqual(block.gas_used, 0)


class TestOutcomes(unittest.TestCase):

    def test_success_to_dict(self):
        outcome = Success(block_number=10, artifact=ProofArtifact(block_number=10, proof=b"abcd", cycles=5))
        data = outcome.to_dict()

        self.assertTrue(outcome.is_success)
        self.assertEqual(data["status"], "success")
        self.assertEqual(data["artifact"]["proof_size_bytes"], 4)
        self.assertTrue(data["artifact"]["has_proof"])

    def test_failure_to_dict(self):
        outcome = Failure(block_number=10, error=RpcError("gone", code=ErrorCode.RPC_NOT_FOUND))
        data = outcome.to_dict()

        self.assertFalse(outcome.is_success)
        self.assertEqual(data, {
            "block_number": 10,
            "status": "failure",
            "error_code": "RPC_NOT_FOUND",
            "error": "gone",
        })


if __name__ == "__main__":
    unittest.main()
