"""L1 Domain — pure logic. No I/O, no subprocess."""
