"""Cart domain - per-user cart state kept outside the document database"""
